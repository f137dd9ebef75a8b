"""
File discovery and namespace derivation.

Namespaces group a file's keys in the locale catalogs. They come from the
innermost directory that is not a route group plus the PascalCased file name:

    src/app/(marketing)/pricing/plan-card.tsx  ->  PricingPlanCard
    src/app/(marketing)/page.tsx               ->  AppPage
    src/page.tsx                               ->  RootPage
"""
from __future__ import annotations

import dataclasses
import fnmatch
import logging
import pathlib
import re
from typing import Iterable, List, Sequence

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE = ("**/*.tsx",)
DEFAULT_IGNORES = (
    "**/node_modules/**",
    "**/dist/**",
    "**/.git/**",
    "**/.next/**",
    "**/build/**",
    "**/coverage/**",
)


@dataclasses.dataclass(frozen=True)
class FileInfo:
    absolute_path: pathlib.Path
    relative_path: pathlib.PurePosixPath
    namespace: str


def _pascal(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[-_]", name))


def _is_route_group(dirname: str) -> bool:
    return dirname.startswith("(") or dirname.endswith(")")


def namespace_for(src_dir: pathlib.Path, path: pathlib.Path) -> str:
    rel = path.relative_to(src_dir)
    file_part = _pascal(path.stem)
    for dirname in reversed(rel.parts[:-1]):
        if not _is_route_group(dirname):
            return f"{dirname[:1].upper()}{dirname[1:]}{file_part}"
    return f"Root{file_part[:1].upper()}{file_part[1:]}"


def is_excluded(base: pathlib.Path, path: pathlib.Path, patterns: Iterable[str]) -> bool:
    try:
        rel = path.relative_to(base).as_posix()
    except ValueError:
        return True
    for pat in patterns:
        if fnmatch.fnmatch(rel, pat):
            return True
        # `**/x/**` also matches `x/...` at the root
        if pat.startswith("**/") and fnmatch.fnmatch(rel, pat[3:]):
            return True
    return False


def resolve_files(
    src_dir: pathlib.Path,
    include: Sequence[str] = DEFAULT_INCLUDE,
    exclude: Sequence[str] = (),
) -> List[FileInfo]:
    """Files under `src_dir` matching any include glob and no exclude glob, sorted by path."""
    base = pathlib.Path(src_dir).resolve()
    ignores = tuple(exclude) + DEFAULT_IGNORES
    # Exclude globs expand with the same engine as include globs, so `**` may
    # match zero directories; fnmatch still covers directory-style patterns.
    excluded = {path for pattern in exclude if pattern for path in base.glob(pattern)}
    seen = set()
    files: List[FileInfo] = []
    for pattern in include or DEFAULT_INCLUDE:
        for path in base.glob(pattern):
            if not path.is_file() or path in seen:
                continue
            seen.add(path)
            if path in excluded or is_excluded(base, path, ignores):
                logger.debug("Excluded %s", path)
                continue
            files.append(
                FileInfo(
                    absolute_path=path,
                    relative_path=pathlib.PurePosixPath(path.relative_to(base).as_posix()),
                    namespace=namespace_for(base, path),
                )
            )
    files.sort(key=lambda f: str(f.relative_path))
    return files
