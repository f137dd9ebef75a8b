"""Filesystem ops shared by the pipeline and the catalog writer (atomic, backups, diffs)."""
from __future__ import annotations

import difflib
import hashlib
import logging
import os
import pathlib
import tempfile

NEWLINE = "\n"

logger = logging.getLogger(__name__)


def atomic_write(path: pathlib.Path, data: str) -> None:
    """Atomically write ``data`` to ``path``.

    This function writes to a temporary file in the same directory, fsyncs,
    then replaces the target. If the target exists, its permissions are
    preserved when possible.
    """
    tmp_dir = path.parent
    tmp_dir.mkdir(parents=True, exist_ok=True)
    orig_mode = None
    try:
        orig_mode = path.stat().st_mode & 0o777
    except OSError:
        orig_mode = None

    tmp_name = None
    try:
        with tempfile.NamedTemporaryFile("w", delete=False, dir=tmp_dir, encoding="utf-8", newline=NEWLINE) as tf:
            tmp_name = tf.name
            tf.write(data)
            tf.flush()
            os.fsync(tf.fileno())
        os.replace(tmp_name, str(path))
        tmp_name = None
        if orig_mode is not None:
            try:
                os.chmod(str(path), orig_mode)
            except OSError:
                logger.debug("Failed to chmod %s", path)
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)


def backup_path_for(path: pathlib.Path, text: str) -> pathlib.Path:
    """`page.tsx` -> `page.tsx.<sha1[:8]>.bak`, keyed on the content being replaced."""
    digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:8]
    return path.with_name(f"{path.name}.{digest}.bak")


def unified_diff(a: str, b: str, path: pathlib.Path) -> str:
    return "".join(
        difflib.unified_diff(
            a.splitlines(keepends=True),
            b.splitlines(keepends=True),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
        )
    )
