"""
i18n-keygen command line.

Examples:

    # Rewrite src/ into build/i18n/, catalogs in build/i18n/translations/
    i18n-keygen run --src src --out build/i18n

    # Preview changes without touching anything
    i18n-keygen run --src src --in-place --dry-run --diff

    # Rewrite in place (page.tsx.<sha1>.bak backups) with a JSON report
    i18n-keygen run --src src --in-place --translations messages --report

    # Infer component rules from already translated code
    i18n-keygen infer-config --src src --output i18n-config.json
"""
from __future__ import annotations

import argparse
import dataclasses
import datetime
import json
import logging
import os
import pathlib
import sys
from typing import List, Optional

from i18n_keygen import __version__
from i18n_keygen.config import DEFAULT_CONFIG_NAME, load_config
from i18n_keygen.formatter import PrettierFormatter
from i18n_keygen.paths import resolve_files
from i18n_keygen.pipeline import BatchResult, Collaborators, WriteOptions, run_batch
from i18n_keygen.preprocess import infer_rules
from i18n_keygen.utils.fs import atomic_write
from i18n_keygen.utils.logging import get_keygen_logger

logger = logging.getLogger(__name__)

REPORTS_DIR = ".i18n_reports"


def _config_path(arg: Optional[str]) -> Optional[pathlib.Path]:
    if arg:
        return pathlib.Path(arg)
    default = pathlib.Path.cwd() / DEFAULT_CONFIG_NAME
    return default if default.exists() else None


def write_report(base: pathlib.Path, batch: BatchResult) -> pathlib.Path:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    path = base / REPORTS_DIR / f"keygen-report-{stamp}.json"
    report = {
        "stats": dataclasses.asdict(batch.stats),
        "catalogs": {locale: str(p) for locale, p in batch.catalogs.items()},
        "files": [
            {
                "path": str(r.path),
                "namespace": r.namespace,
                "changed": r.changed,
                "output": str(r.output_path) if r.output_path else None,
                "error": r.error,
                "keys": r.translations,
            }
            for r in batch.results
        ],
    }
    atomic_write(path, json.dumps(report, ensure_ascii=False, indent=2) + "\n")
    return path


def run(args: argparse.Namespace) -> int:
    src = pathlib.Path(args.src).resolve()
    if not src.is_dir():
        logger.error("Source directory not found: %s", src)
        return 2
    if not args.in_place and not args.out and not args.dry_run:
        logger.error("Pass --out DIR, --in-place or --dry-run")
        return 2

    config = load_config(_config_path(args.config))
    get_keygen_logger(args.log_level or config.log_level)

    out_dir = None if args.in_place or not args.out else pathlib.Path(args.out).resolve()
    base = out_dir or src
    translations_dir = pathlib.Path(args.translations).resolve() if args.translations else base / "translations"
    locales = tuple(args.locale) or config.locales
    source_locale = config.source_locale
    if source_locale not in locales:
        locales = (source_locale,) + locales

    files = resolve_files(src, args.include or config.include, args.exclude or config.exclude)
    logger.info("Found %d files under %s", len(files), src)

    collab = Collaborators.build(config.rules, PrettierFormatter(enabled=not args.no_format))
    options = WriteOptions(
        out_dir=out_dir,
        dry_run=args.dry_run,
        emit_diff=args.diff,
        backup=not args.no_backup,
        format=not args.no_format,
    )
    batch = run_batch(
        files,
        collab,
        options,
        translations_dir=translations_dir,
        locales=locales,
        source_locale=source_locale,
        threads=args.threads,
    )

    if args.diff:
        diffs = [r.diff for r in batch.results if r.diff]
        if diffs:
            sys.stdout.write("\n".join(diffs))
    if args.report:
        logger.info("Report written to %s", write_report(base, batch))

    stats = batch.stats
    print(f"\nDone. Files scanned: {stats.scanned}, changed: {stats.changed}, keys: {stats.keys}, failed: {stats.failed}")
    return 0


def infer_config(args: argparse.Namespace) -> int:
    src = pathlib.Path(args.src).resolve()
    if not src.is_dir():
        logger.error("Source directory not found: %s", src)
        return 2
    document = infer_rules(f.absolute_path for f in resolve_files(src))
    text = json.dumps(document, ensure_ascii=False, indent=2) + "\n"
    if args.output:
        atomic_write(pathlib.Path(args.output), text)
        logger.info("Configuration saved to %s", args.output)
    else:
        sys.stdout.write(text)
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="i18n-keygen", description="Rewrite JSX text into translation-key lookups")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("--log-level", help="DEBUG, INFO, WARNING, ... (overrides config and I18N_KEYGEN_LOG_LEVEL)")
    sub = ap.add_subparsers(dest="command", required=True)

    rp = sub.add_parser("run", help="Rewrite files and update locale catalogs")
    rp.add_argument("--src", required=True, help="Source root to scan")
    rp.add_argument("--out", help="Output root; rewritten files mirror their path under --src")
    rp.add_argument("--translations", help="Directory for <locale>.json catalogs (default: <out or src>/translations)")
    rp.add_argument("--config", help=f"Rule config JSON (default: ./{DEFAULT_CONFIG_NAME} when present)")
    rp.add_argument("--include", action="append", default=[], help="Glob relative to --src (repeatable)")
    rp.add_argument("--exclude", action="append", default=[], help="Glob relative to --src to skip (repeatable)")
    rp.add_argument("--locale", action="append", default=[], help="Catalog locale (repeatable; default from config)")
    rp.add_argument("--in-place", action="store_true", help="Rewrite files where they are")
    rp.add_argument("--dry-run", action="store_true", help="Report only; no writes")
    rp.add_argument("--diff", action="store_true", help="Print unified diff for changes")
    rp.add_argument("--no-backup", action="store_true", help="Do not write .bak backups with --in-place")
    rp.add_argument("--no-format", action="store_true", help="Skip the Prettier pass")
    rp.add_argument("--threads", type=int, default=os.cpu_count() or 4, help="Parallel file workers")
    rp.add_argument("--report", action="store_true", help=f"Write a JSON report under <out or src>/{REPORTS_DIR}")
    rp.set_defaults(func=run)

    ip = sub.add_parser("infer-config", help="Infer component rules from already translated code")
    ip.add_argument("--src", required=True, help="Source root to scan")
    ip.add_argument("--output", help="Write the config here instead of stdout")
    ip.set_defaults(func=infer_config)
    return ap


def main(argv: Optional[List[str]] = None) -> None:
    args = build_arg_parser().parse_args(argv)
    get_keygen_logger(args.log_level)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
