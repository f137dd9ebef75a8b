#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tests for the traversal rules (text, attributes, fragments, records, call arguments).

These only run the dispatcher, so expected output never contains injected
imports or declarations.
"""
from __future__ import annotations

import textwrap
import unittest
from typing import Set, Tuple

from i18n_keygen import nodes
from i18n_keygen.config import DEFAULT_DOCUMENT, default_rules, merge_documents, rules_from_document
from i18n_keygen.dispatcher import HANDLERS, NodeKind, traverse
from i18n_keygen.keys import TraversalContext
from i18n_keygen.parser import SourceParser

RULES = default_rules()
PARSER = SourceParser()


def rewrite(source: str, rules=RULES) -> Tuple[str, TraversalContext]:
    ctx = traverse(PARSER.parse(textwrap.dedent(source)), rules)
    return ctx.rewriter.apply(), ctx


def component(jsx: str) -> str:
    return f"export default async function Page() {{\n  return {jsx};\n}}\n"


def lookup_keys(code: str) -> Set[str]:
    """Keys of every `t("...")` call with a single string argument in `code`."""
    tree = PARSER.parse(code)
    found = set()
    for n in tree.walk():
        if n.type != "call_expression":
            continue
        callee = n.child_by_field_name("function")
        args = n.child_by_field_name("arguments")
        if callee is None or args is None or tree.text(callee) != "t":
            continue
        inner = nodes.named_children(args)
        if len(inner) == 1 and inner[0].type == "string":
            found.add(nodes.string_value(tree, inner[0]))
    return found


class TestDispatchTable(unittest.TestCase):
    def test_every_kind_has_a_handler(self):
        self.assertEqual(set(HANDLERS), set(NodeKind))


class TestTextRule(unittest.TestCase):
    """JSX text children of named elements."""

    def test_heading_text(self):
        code, ctx = rewrite(component("<h2>Welcome</h2>"))
        self.assertIn('<h2>{t("SectionTitle1")}</h2>', code)
        self.assertEqual(ctx.key_table, {"SectionTitle1": "Welcome"})

    def test_paragraph_is_subtitle(self):
        code, ctx = rewrite(component("<div><p>Intro</p></div>"))
        self.assertIn('<p>{t("SectionSubtitle1")}</p>', code)
        self.assertEqual(ctx.key_table["SectionSubtitle1"], "Intro")

    def test_unknown_tag_falls_back_to_text(self):
        code, ctx = rewrite(component("<button>Save</button>"))
        self.assertIn('<button>{t("SectionText1")}</button>', code)

    def test_configured_text_child_component(self):
        code, ctx = rewrite(component("<TooltipContent>Copy link</TooltipContent>"))
        self.assertIn('{t("SectionTooltipContent1")}', code)
        self.assertEqual(ctx.key_table, {"SectionTooltipContent1": "Copy link"})

    def test_siblings_are_numbered(self):
        code, ctx = rewrite(component("<TooltipContent><p>One</p><p>Two</p><p>Three</p><p>Four</p></TooltipContent>"))
        self.assertEqual(
            ctx.key_table,
            {
                "SectionSubtitle1": "One",
                "SectionSubtitle2": "Two",
                "SectionSubtitle3": "Three",
                "SectionSubtitle4": "Four",
            },
        )

    def test_surrounding_whitespace_is_kept(self):
        src = """\
        export function Card() {
          return (
            <p>
              Hello
              world &amp; friends
            </p>
          );
        }
        """
        code, ctx = rewrite(src)
        self.assertEqual(ctx.key_table, {"SectionSubtitle1": "Hello world & friends"})
        self.assertIn('<p>\n      {t("SectionSubtitle1")}\n    </p>', code)

    def test_whitespace_only_text_is_skipped(self):
        src = component("<div>\n    <span>Hi</span>\n  </div>")
        code, ctx = rewrite(src)
        self.assertEqual(list(ctx.key_table.values()), ["Hi"])

    def test_text_around_child_elements(self):
        code, ctx = rewrite(component("<p>Read the <a>docs</a> first</p>"))
        self.assertEqual(sorted(ctx.key_table.values()), ["Read the", "docs", "first"])
        self.assertIn("<a>", code)
        self.assertNotIn("Read the", code)


class TestDepth(unittest.TestCase):
    """Depth counts element ancestors of the text."""

    def _nested(self, levels: int) -> str:
        return "<div>" * levels + "Deep" + "</div>" * levels

    def test_band_per_depth(self):
        expected = {1: "SectionText1", 3: "SectionText1", 4: "PartText1", 5: "PartText1", 6: "AreaText1"}
        for levels, key in expected.items():
            with self.subTest(levels=levels):
                code, ctx = rewrite(component(self._nested(levels)))
                self.assertEqual(ctx.key_table, {key: "Deep"})

    def test_expression_containers_do_not_count(self):
        code, ctx = rewrite(component('<div><div><div><p>{"Hi"}</p></div></div></div>'))
        self.assertEqual(ctx.key_table, {"PartSubtitle1": "Hi"})


class TestAttributeRule(unittest.TestCase):
    """String attributes of configured components."""

    def test_combobox_placeholder(self):
        code, ctx = rewrite(component('<Combobox placeholder="Pick one" />'))
        self.assertIn('placeholder={t("SectionComboboxPlaceholder1")}', code)
        self.assertEqual(ctx.key_table, {"SectionComboboxPlaceholder1": "Pick one"})

    def test_unconfigured_prop_is_left_alone(self):
        code, ctx = rewrite(component('<Combobox label="Fruit" placeholder="Pick one" />'))
        self.assertIn('label="Fruit"', code)
        self.assertEqual(list(ctx.key_table.values()), ["Pick one"])

    def test_unconfigured_component_is_left_alone(self):
        src = component('<input placeholder="Email" />')
        code, ctx = rewrite(src)
        self.assertEqual(code, src)
        self.assertEqual(ctx.key_table, {})

    def test_class_name_never_rewritten(self):
        """className is ignored even when a component lists it as translatable."""
        doc = merge_documents(DEFAULT_DOCUMENT, {"components": {"Combobox": {"props": ["className", "placeholder"]}}})
        rules = rules_from_document(doc)
        code, ctx = rewrite(component('<Combobox className="w-full" placeholder="Pick" />'), rules)
        self.assertIn('className="w-full"', code)
        self.assertEqual(ctx.key_table, {"SectionComboboxPlaceholder1": "Pick"})

    def test_attribute_entities_are_decoded(self):
        code, ctx = rewrite(component('<Combobox emptyText="Nothing &amp; nobody" />'))
        self.assertEqual(ctx.key_table, {"SectionComboboxEmptyText1": "Nothing & nobody"})


class TestExpressionChild(unittest.TestCase):
    def test_string_literal_child(self):
        code, ctx = rewrite(component('<p>{"Hello"}</p>'))
        self.assertIn('<p>{t("SectionSubtitle1")}</p>', code)
        self.assertEqual(ctx.key_table, {"SectionSubtitle1": "Hello"})

    def test_blank_literal_child(self):
        src = component('<p>{" "}</p>')
        code, ctx = rewrite(src)
        self.assertEqual(code, src)


class TestFragmentRule(unittest.TestCase):
    def test_fragment_text(self):
        code, ctx = rewrite(component("<>Hello</>"))
        self.assertIn('<>{t("SectionText1")}</>', code)
        self.assertEqual(ctx.key_table, {"SectionText1": "Hello"})

    def test_fragment_string_child(self):
        code, ctx = rewrite(component('<>{"Hi there"}</>'))
        self.assertIn('<>{t("SectionText1")}</>', code)

    def test_nested_fragment_uses_own_depth(self):
        """Children of a fragment are banded by the fragment's depth, not one below it."""
        code, ctx = rewrite(component("<div><div><div><>Hi</></div></div></div>"))
        self.assertEqual(ctx.key_table, {"SectionText1": "Hi"})

        deep = "<div><div><div><div><div><>{\"Deep\"}</></div></div></div></div></div>"
        code, ctx = rewrite(component(deep))
        self.assertEqual(ctx.key_table, {"PartText1": "Deep"})


class TestArrayRecords(unittest.TestCase):
    def test_steps_array(self):
        code, ctx = rewrite('const steps = [{ title: "Go", desc: "Do it" }];\n')
        self.assertEqual(code, 'const steps = [{ title: t("stepsTitle1"), desc: t("stepsDesc1") }];\n')
        self.assertEqual(ctx.key_table, {"stepsTitle1": "Go", "stepsDesc1": "Do it"})

    def test_position_and_ignored_props(self):
        src = """\
        const items = [
          { id: "a", label: "First" },
          { id: "b", label: "Second" },
        ];
        """
        code, ctx = rewrite(src)
        self.assertEqual(ctx.key_table, {"itemsLabel1": "First", "itemsLabel2": "Second"})
        self.assertIn('id: "a"', code)
        self.assertIn('label: t("itemsLabel2")', code)

    def test_records_inside_a_call_use_array_names(self):
        code, ctx = rewrite('const rows = [{ title: "A" }];\nrender(rows);\n')
        self.assertEqual(list(ctx.key_table), ["rowsTitle1"])

    def test_same_array_name_in_two_functions_is_logged(self):
        src = """\
        function a() {
          const items = [{ label: "First" }];
        }
        function b() {
          const items = [{ label: "Second" }];
        }
        """
        with self.assertLogs("i18n_keygen.keys", level="WARNING"):
            code, ctx = rewrite(src)
        self.assertEqual(ctx.key_table, {"itemsLabel1": "Second"})


class TestCallArguments(unittest.TestCase):
    def test_repeated_calls_are_suffixed(self):
        src = """\
        function notify() {
          toast({ title: "Saved", description: "All good" });
          toast({ title: "Failed" });
        }
        """
        code, ctx = rewrite(src)
        self.assertEqual(
            ctx.key_table,
            {"toastTitle": "Saved", "toastDescription": "All good", "toastTitle2": "Failed"},
        )
        self.assertIn('toast({ title: t("toastTitle2") });', code)

    def test_calls_do_not_overwrite_array_records(self):
        src = """\
        const toast = [{ title: "A" }, { title: "B" }];

        function notify() {
          toast({ title: "Saved" });
          toast({ title: "Failed" });
        }
        """
        code, ctx = rewrite(src)
        self.assertEqual(
            ctx.key_table,
            {"toastTitle1": "A", "toastTitle2": "B", "toastTitle": "Saved", "toastTitle3": "Failed"},
        )
        self.assertEqual(lookup_keys(code), set(ctx.key_table))

    def test_plain_object_is_left_alone(self):
        src = 'const cfg = { title: "Keep" };\n'
        code, ctx = rewrite(src)
        self.assertEqual(code, src)

    def test_member_callee_is_left_alone(self):
        src = 'toast.error({ title: "Boom" });\n'
        code, ctx = rewrite(src)
        self.assertEqual(code, src)


class TestAlreadyTranslated(unittest.TestCase):
    """Output of a previous run must come back untouched."""

    SOURCE = """\
    "use client";
    import { useTranslations } from "next-intl";

    export function Hero() {
      const t = useTranslations("X");
      const steps = [{ title: t("stepsTitle1") }];
      return (
        <div>
          <h1>{t("SectionTitle1")}</h1>
          <Combobox placeholder={t("PartComboboxPlaceholder1")} />
        </div>
      );
    }
    """

    def test_no_edits_and_empty_table(self):
        src = textwrap.dedent(self.SOURCE)
        code, ctx = rewrite(src)
        self.assertEqual(code, src)
        self.assertEqual(ctx.key_table, {})
        self.assertFalse(ctx.rewriter.changed)

    def test_second_pass_is_a_no_op(self):
        src = component('<div><h2>Welcome</h2><Combobox placeholder="Pick one" /><>Hi</></div>')
        once, _ = rewrite(src)
        twice, ctx = rewrite(once)
        self.assertEqual(twice, once)
        self.assertEqual(ctx.key_table, {})


class TestRoundTrip(unittest.TestCase):
    def test_every_key_becomes_a_lookup_call(self):
        src = component(
            '<div><h1>Title</h1><p>Body {"extra"}</p><Combobox searchPlaceholder="Search" /><>Frag</></div>'
        )
        code, ctx = rewrite(src)
        self.assertTrue(ctx.key_table)
        self.assertEqual(lookup_keys(code), set(ctx.key_table))


if __name__ == "__main__":
    unittest.main(verbosity=2)
