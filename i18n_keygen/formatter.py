"""
Optional Prettier pass over rewritten code.

Formatting is a convenience: any failure (Prettier missing, non-zero exit,
timeout) logs a warning and hands back the unformatted code.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60


class PrettierFormatter:
    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        enabled: bool = True,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.enabled = enabled
        self.timeout = timeout
        self._command: Optional[List[str]] = list(command) if command else None

    def resolve_command(self) -> Optional[List[str]]:
        if self._command:
            return self._command
        exe = shutil.which("prettier")
        if exe:
            return [exe]
        npx = shutil.which("npx")
        if npx:
            return [npx, "--no-install", "prettier"]
        return None

    def format_code(self, code: str, filename: str) -> str:
        if not self.enabled:
            return code
        cmd = self.resolve_command()
        if cmd is None:
            logger.debug("Prettier not found; leaving %s unformatted", filename)
            return code
        try:
            proc = subprocess.run(
                cmd + ["--stdin-filepath", filename],
                input=code,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Prettier formatting failed for %s: %s. Using unformatted code.", filename, e)
            return code
        if proc.returncode != 0 or not proc.stdout:
            logger.warning(
                "Prettier formatting failed for %s (exit %s): %s. Using unformatted code.",
                filename,
                proc.returncode,
                (proc.stderr or "").strip()[:500],
            )
            return code
        return proc.stdout
