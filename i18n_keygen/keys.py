"""
Translation-key naming.

Tree candidates (JSX text, attribute values, fragment text) are named

    <depth band><component + Prop | component | category><occurrence>

e.g. `SectionTitle1`, `PartComboboxPlaceholder2`, `AreaTooltipContent1`.
The occurrence counter lives in a TraversalContext created for one file and
thrown away afterwards, so keys restart at 1 in every file. Identical text is
never merged into one key: two "Save" labels produce two keys.

Two record-style schemes are used outside the tree rules:

- array of records:  `steps[0].title` -> `stepsTitle1` (1-based array position)
- call arguments:    `toast({title})` -> `toastTitle`, then `toastTitle2`, ...
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Optional

from tree_sitter import Node

from i18n_keygen.config import RuleConfig
from i18n_keygen.parser import SourceTree
from i18n_keygen.rewriter import Rewriter
from i18n_keygen.structure import classify, depth_band

logger = logging.getLogger(__name__)


def capitalize(name: str) -> str:
    """Upper-case only the first character: `searchPlaceholder` -> `SearchPlaceholder`."""
    return name[:1].upper() + name[1:]


@dataclasses.dataclass
class Candidate:
    text: str
    depth: int
    enclosing: Optional[Node]
    enclosing_name: Optional[str]
    prop_name: Optional[str] = None


@dataclasses.dataclass
class TraversalContext:
    """Per-file traversal state. Never reuse one across files."""
    tree: SourceTree
    rules: RuleConfig
    rewriter: Rewriter
    key_table: Dict[str, str] = dataclasses.field(default_factory=dict)
    occurrences: Dict[str, int] = dataclasses.field(default_factory=dict)

    @classmethod
    def for_tree(cls, tree: SourceTree, rules: RuleConfig) -> "TraversalContext":
        return cls(tree=tree, rules=rules, rewriter=Rewriter(tree.source))

    def bump(self, base: str) -> int:
        self.occurrences[base] = self.occurrences.get(base, 0) + 1
        return self.occurrences[base]


def key_segment(ctx: TraversalContext, candidate: Candidate) -> str:
    if ctx.rules.component(candidate.enclosing_name) is not None:
        if candidate.prop_name:
            return f"{candidate.enclosing_name}{capitalize(candidate.prop_name)}"
        return candidate.enclosing_name
    if candidate.enclosing is None:
        return classify(ctx.tree, ctx.tree.root, ctx.rules)
    return classify(ctx.tree, candidate.enclosing, ctx.rules)


def generate_key(ctx: TraversalContext, candidate: Candidate) -> str:
    base = depth_band(candidate.depth) + key_segment(ctx, candidate)
    key = f"{base}{ctx.bump(base)}"
    ctx.key_table[key] = candidate.text
    return key


def array_record_key(ctx: TraversalContext, variable: str, prop: str, index: int, text: str) -> str:
    key = f"{variable}{capitalize(prop)}{index + 1}"
    previous = ctx.key_table.get(key)
    if previous is not None and previous != text:
        logger.warning("Key %s reused: %r replaces %r", key, text, previous)
    ctx.key_table[key] = text
    return key


def call_argument_key(ctx: TraversalContext, callee: str, prop: str, text: str) -> str:
    # The first occurrence keeps the bare name; repeats are suffixed with the
    # next count not already taken in this file.
    base = f"{callee}{capitalize(prop)}"
    count = ctx.bump(base)
    key = base if count == 1 else f"{base}{count}"
    while key in ctx.key_table:
        key = f"{base}{ctx.bump(base)}"
    ctx.key_table[key] = text
    return key
