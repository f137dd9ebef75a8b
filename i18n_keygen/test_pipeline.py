#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for per-file processing, batch isolation and the formatter fallback.
"""
from __future__ import annotations

import json
import pathlib
import tempfile
import unittest

from i18n_keygen.config import default_rules
from i18n_keygen.formatter import PrettierFormatter
from i18n_keygen.parser import ParseError, SourceParser
from i18n_keygen.paths import resolve_files
from i18n_keygen.pipeline import Collaborators, WriteOptions, process_file, run_batch

PAGE = "export default async function Page() {\n  return <h2>Welcome</h2>;\n}\n"
ABOUT = "export default async function About() {\n  return <h2>About us</h2>;\n}\n"
BROKEN = "const = ;\n"


def _collab() -> Collaborators:
    return Collaborators.build(default_rules(), PrettierFormatter(enabled=False))


def _tree(base: pathlib.Path, files) -> None:
    for rel, content in files.items():
        path = base / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


class TestParser(unittest.TestCase):
    def test_syntax_error_is_reported(self):
        with self.assertRaises(ParseError) as cm:
            SourceParser().parse(BROKEN)
        self.assertEqual(cm.exception.line, 1)


class TestProcessFile(unittest.TestCase):
    def test_out_dir_mirrors_tree(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            src = pathlib.Path(tmpdir) / "src"
            out = pathlib.Path(tmpdir) / "out"
            _tree(src, {"app/dashboard/page.tsx": PAGE})
            (info,) = resolve_files(src)
            result = process_file(info, _collab(), WriteOptions(out_dir=out))
            self.assertTrue(result.ok)
            self.assertTrue(result.changed)
            self.assertEqual(result.output_path, out / "app/dashboard/page.tsx")
            written = result.output_path.read_text(encoding="utf-8")
            self.assertIn('const t = await getTranslations("DashboardPage");', written)
            self.assertIn('<h2>{t("SectionTitle1")}</h2>', written)
            # source untouched
            self.assertEqual((src / "app/dashboard/page.tsx").read_text(encoding="utf-8"), PAGE)

    def test_in_place_with_backup(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            src = pathlib.Path(tmpdir)
            _tree(src, {"page.tsx": PAGE})
            (info,) = resolve_files(src)
            process_file(info, _collab(), WriteOptions())
            backups = list(src.glob("page.tsx.*.bak"))
            self.assertEqual(len(backups), 1)
            self.assertEqual(backups[0].read_text(encoding="utf-8"), PAGE)
            self.assertIn('t("SectionTitle1")', (src / "page.tsx").read_text(encoding="utf-8"))

    def test_dry_run_with_diff(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            src = pathlib.Path(tmpdir)
            _tree(src, {"page.tsx": PAGE})
            (info,) = resolve_files(src)
            result = process_file(info, _collab(), WriteOptions(dry_run=True, emit_diff=True))
            self.assertIn('+  return <h2>{t("SectionTitle1")}</h2>;', result.diff)
            self.assertEqual((src / "page.tsx").read_text(encoding="utf-8"), PAGE)
            self.assertEqual(list(src.glob("*.bak")), [])

    def test_parse_error_leaves_file_untouched(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            src = pathlib.Path(tmpdir)
            _tree(src, {"broken.tsx": BROKEN})
            (info,) = resolve_files(src)
            with self.assertLogs("i18n_keygen.pipeline", level="ERROR"):
                result = process_file(info, _collab(), WriteOptions())
            self.assertFalse(result.ok)
            self.assertEqual((src / "broken.tsx").read_text(encoding="utf-8"), BROKEN)


class TestRunBatch(unittest.TestCase):
    """Thread pool batch with catalog merges on the caller."""

    def test_failures_are_isolated(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = pathlib.Path(tmpdir)
            src, out, messages = base / "src", base / "out", base / "messages"
            _tree(src, {"app/about/page.tsx": ABOUT, "app/broken/page.tsx": BROKEN, "app/home/page.tsx": PAGE})
            files = resolve_files(src)
            with self.assertLogs("i18n_keygen.pipeline", level="ERROR"):
                batch = run_batch(
                    files,
                    _collab(),
                    WriteOptions(out_dir=out),
                    translations_dir=messages,
                    locales=("en", "zh"),
                    threads=3,
                )
            self.assertEqual(batch.stats.scanned, 3)
            self.assertEqual(batch.stats.failed, 1)
            self.assertEqual(batch.stats.changed, 2)
            self.assertEqual([r.ok for r in batch.results], [True, False, True])

            en = json.loads((messages / "en.json").read_text(encoding="utf-8"))
            zh = json.loads((messages / "zh.json").read_text(encoding="utf-8"))
            # every file restarts its counters
            self.assertEqual(en, {"AboutPage": {"SectionTitle1": "About us"}, "HomePage": {"SectionTitle1": "Welcome"}})
            self.assertEqual(zh["HomePage"], {"SectionTitle1": ""})
            self.assertFalse((out / "app/broken/page.tsx").exists())

    def test_dry_run_writes_no_catalogs(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = pathlib.Path(tmpdir)
            _tree(base / "src", {"page.tsx": PAGE})
            batch = run_batch(
                resolve_files(base / "src"),
                _collab(),
                WriteOptions(dry_run=True),
                translations_dir=base / "messages",
            )
            self.assertEqual(batch.stats.keys, 1)
            self.assertFalse((base / "messages").exists())


class TestFormatter(unittest.TestCase):
    def test_disabled(self):
        self.assertEqual(PrettierFormatter(enabled=False).format_code("a  =  1", "x.tsx"), "a  =  1")

    def test_missing_binary_falls_back(self):
        formatter = PrettierFormatter(command=["/nonexistent/bin/prettier"])
        with self.assertLogs("i18n_keygen.formatter", level="WARNING"):
            self.assertEqual(formatter.format_code("a  =  1", "x.tsx"), "a  =  1")


if __name__ == "__main__":
    unittest.main(verbosity=2)
