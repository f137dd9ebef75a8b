"""
Per-file and batch orchestration.

    parse -> traverse -> inject -> apply edits -> format -> write
                 \
                  key table -> locale catalogs

Collaborators (parser, rule set, formatter) are built once per batch and
passed in explicitly. Each file gets a fresh TraversalContext, so workers in
the thread pool never share key counters or edit buffers. Catalog merges run
on the calling thread, in file order, after the workers are done.
"""
from __future__ import annotations

import concurrent.futures as cf
import dataclasses
import logging
import os
import pathlib
from typing import Dict, List, Optional, Sequence

from i18n_keygen.catalog import merge_translations
from i18n_keygen.config import RuleConfig
from i18n_keygen.dispatcher import traverse
from i18n_keygen.formatter import PrettierFormatter
from i18n_keygen.injector import InjectionResult, inject_lookup
from i18n_keygen.parser import ParseError, SourceParser, SourceTree
from i18n_keygen.paths import FileInfo
from i18n_keygen.utils.fs import atomic_write, backup_path_for, unified_diff
from i18n_keygen.utils.logging import compact_json

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Collaborators:
    parser: SourceParser
    rules: RuleConfig
    formatter: PrettierFormatter

    @classmethod
    def build(cls, rules: RuleConfig, formatter: Optional[PrettierFormatter] = None) -> "Collaborators":
        return cls(parser=SourceParser(), rules=rules, formatter=formatter or PrettierFormatter())


@dataclasses.dataclass
class ProcessResult:
    code: str
    translations: Dict[str, str]
    injection: InjectionResult


def process_ast(
    tree: SourceTree,
    rules: RuleConfig,
    namespace: str,
    is_server: Optional[bool] = None,
) -> ProcessResult:
    """Rewrite one parsed file. Returns the new code and its key table."""
    ctx = traverse(tree, rules)
    injection = inject_lookup(tree, ctx.rewriter, rules, namespace, is_server=is_server)
    code = ctx.rewriter.apply()
    return ProcessResult(code=code, translations=dict(ctx.key_table), injection=injection)


def process_source(
    source: str,
    namespace: str,
    rules: RuleConfig,
    parser: Optional[SourceParser] = None,
    is_server: Optional[bool] = None,
) -> ProcessResult:
    tree = (parser or SourceParser()).parse(source)
    return process_ast(tree, rules, namespace, is_server=is_server)


@dataclasses.dataclass
class WriteOptions:
    """Where and how rewritten files land.

    `out_dir` None means in place (with `.bak` backups unless `backup` is off).
    """
    out_dir: Optional[pathlib.Path] = None
    dry_run: bool = False
    emit_diff: bool = False
    backup: bool = True
    format: bool = True


@dataclasses.dataclass
class FileResult:
    path: pathlib.Path
    namespace: str
    translations: Dict[str, str] = dataclasses.field(default_factory=dict)
    changed: bool = False
    output_path: Optional[pathlib.Path] = None
    output_text: Optional[str] = None
    diff: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _target_path(info: FileInfo, options: WriteOptions) -> pathlib.Path:
    if options.out_dir is None:
        return info.absolute_path
    return pathlib.Path(options.out_dir).joinpath(*info.relative_path.parts)


def _write_output(info: FileInfo, original: str, new_text: str, options: WriteOptions) -> pathlib.Path:
    target = _target_path(info, options)
    if options.out_dir is None and options.backup:
        backup = backup_path_for(target, original)
        try:
            atomic_write(backup, original)
        except OSError as e:
            logger.warning("Could not write backup %s: %s", backup, e)
    atomic_write(target, new_text)
    return target


def process_file(info: FileInfo, collab: Collaborators, options: Optional[WriteOptions] = None) -> FileResult:
    """Process one file end to end. Parse errors and I/O errors end up in `FileResult.error`."""
    options = options or WriteOptions()
    result = FileResult(path=info.absolute_path, namespace=info.namespace)
    try:
        original = info.absolute_path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, OSError) as e:
        logger.warning("Failed to read %s: %s", info.absolute_path, e)
        result.error = str(e)
        return result

    try:
        processed = process_ast(collab.parser.parse(original), collab.rules, info.namespace)
    except ParseError as e:
        logger.error("Skipping %s: %s", info.relative_path, e)
        result.error = str(e)
        return result

    new_text = processed.code
    result.translations = processed.translations
    result.changed = new_text != original
    if result.changed and options.format:
        new_text = collab.formatter.format_code(new_text, str(info.absolute_path))
    result.output_text = new_text

    if options.emit_diff and result.changed:
        result.diff = unified_diff(original, new_text, info.relative_path)
    if options.dry_run:
        return result
    # Unchanged files are still mirrored into the output tree.
    if result.changed or options.out_dir is not None:
        try:
            result.output_path = _write_output(info, original, new_text, options)
        except OSError as e:
            logger.error("Failed to write %s: %s", info.relative_path, e)
            result.error = str(e)
            return result

    logger.info("%s: namespace %s, %d keys", info.relative_path, info.namespace, len(result.translations))
    if result.translations:
        logger.debug("%s keys: %s", info.namespace, compact_json(result.translations))
    return result


@dataclasses.dataclass
class BatchStats:
    scanned: int = 0
    changed: int = 0
    keys: int = 0
    failed: int = 0


@dataclasses.dataclass
class BatchResult:
    results: List[FileResult]
    stats: BatchStats
    catalogs: Dict[str, pathlib.Path] = dataclasses.field(default_factory=dict)


def run_batch(
    files: Sequence[FileInfo],
    collab: Collaborators,
    options: Optional[WriteOptions] = None,
    translations_dir: Optional[pathlib.Path] = None,
    locales: Sequence[str] = ("en",),
    source_locale: str = "en",
    threads: Optional[int] = None,
) -> BatchResult:
    """Process `files` in a thread pool, then merge catalogs in file order.

    One file's failure is logged and recorded; it never stops the batch.
    Catalogs are skipped on a dry run or when `translations_dir` is None.
    """
    options = options or WriteOptions()
    workers = max(1, threads or os.cpu_count() or 4)

    def _work(info: FileInfo) -> FileResult:
        try:
            return process_file(info, collab, options)
        except Exception as e:
            logger.exception("Error processing %s", info.absolute_path)
            return FileResult(path=info.absolute_path, namespace=info.namespace, error=str(e))

    with cf.ThreadPoolExecutor(max_workers=workers) as ex:
        results = list(ex.map(_work, files))

    stats = BatchStats(scanned=len(results))
    catalogs: Dict[str, pathlib.Path] = {}
    for res in results:
        if not res.ok:
            stats.failed += 1
            continue
        stats.changed += int(res.changed)
        stats.keys += len(res.translations)
        if translations_dir is None or options.dry_run or not res.translations:
            continue
        try:
            catalogs.update(
                merge_translations(translations_dir, res.translations, res.namespace, locales, source_locale)
            )
        except OSError as e:
            logger.error("Failed to update catalogs for %s: %s", res.namespace, e)
            res.error = str(e)
            stats.failed += 1
    return BatchResult(results=results, stats=stats, catalogs=catalogs)
