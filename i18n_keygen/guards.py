"""Ignore-list and already-translated checks consulted before any rewrite."""
from __future__ import annotations

from typing import Optional

from tree_sitter import Node

from i18n_keygen import nodes
from i18n_keygen.config import RuleConfig
from i18n_keygen.parser import SourceTree


def is_ignored_prop(rules: RuleConfig, name: Optional[str]) -> bool:
    return bool(name) and name in rules.ignore_props


def is_lookup_call(tree: SourceTree, node: Optional[Node], rules: RuleConfig) -> bool:
    """`t(...)` with a bare identifier callee equal to the lookup name."""
    if node is None or node.type != "call_expression":
        return False
    callee = node.child_by_field_name("function")
    return callee is not None and callee.type == "identifier" and tree.text(callee) == rules.runtime.lookup


def is_already_translated(tree: SourceTree, node: Optional[Node], rules: RuleConfig) -> bool:
    """True for a lookup call, or a `{ ... }` container whose only expression is one.

    Re-running the rewrite over its own output must be a no-op; every rule asks
    this before touching a node.
    """
    if node is None:
        return False
    if node.type == "jsx_expression":
        return is_lookup_call(tree, nodes.sole_expression(node), rules)
    return is_lookup_call(tree, node, rules)
