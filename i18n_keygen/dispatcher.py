"""
Traversal dispatcher: one pre-order walk, one extraction rule per node kind.

Each node is classified into a closed set of kinds (NodeKind) and handed to
exactly one handler. Handlers record replacements in the context's edit
buffer; a node that lies inside an already replaced range is never touched
again, which is what keeps array records from also being picked up by the
call-argument rule.

Anything unexpected (namespaced attribute names, member-expression tags,
template literals) simply means "not a translation target": handlers return
without rewriting rather than raising.
"""
from __future__ import annotations

import enum
import json
import logging
from typing import Callable, Dict, Optional

from tree_sitter import Node

from i18n_keygen import nodes
from i18n_keygen.config import RuleConfig
from i18n_keygen.guards import is_already_translated, is_ignored_prop
from i18n_keygen.keys import Candidate, TraversalContext, array_record_key, call_argument_key, generate_key
from i18n_keygen.parser import SourceTree
from i18n_keygen.structure import FRAGMENT_NAME, depth

logger = logging.getLogger(__name__)


class NodeKind(enum.Enum):
    STRING = "string"
    FRAGMENT = "fragment"
    TEXT = "text"
    ARRAY_DECLARATOR = "array_declarator"
    OBJECT_PROPERTY = "object_property"
    OTHER = "other"


def node_kind(node: Node) -> NodeKind:
    t = node.type
    if t in nodes.STRING_TYPES and node.is_named:
        return NodeKind.STRING
    if t in nodes.TEXT_PIECE_TYPES:
        return NodeKind.TEXT
    if t in (nodes.ELEMENT, nodes.FRAGMENT) and nodes.is_fragment(node):
        return NodeKind.FRAGMENT
    if t == "variable_declarator":
        value = node.child_by_field_name("value")
        if value is not None and value.type == "array":
            return NodeKind.ARRAY_DECLARATOR
        return NodeKind.OTHER
    if t == "pair":
        return NodeKind.OBJECT_PROPERTY
    return NodeKind.OTHER


def lookup_call(ctx: TraversalContext, key: str) -> str:
    return f"{ctx.rules.runtime.lookup}({json.dumps(key)})"


def _same(a: Optional[Node], b: Node) -> bool:
    return a is not None and a.type == b.type and a.start_byte == b.start_byte and a.end_byte == b.end_byte


# ── STRING ────────────────────────────────────────────────────────────────────

def _handle_string(ctx: TraversalContext, node: Node) -> None:
    tree, rules = ctx.tree, ctx.rules
    if ctx.rewriter.covers(node):
        return
    text = nodes.string_value(tree, node)
    if nodes.is_blank(text):
        return
    if is_already_translated(tree, nodes.call_parent(node), rules):
        return
    parent = node.parent
    if parent is None:
        return
    if parent.type == "jsx_attribute":
        _rewrite_attribute_value(ctx, node, parent, text)
    elif parent.type == "jsx_expression" and _same(nodes.sole_expression(parent), node):
        element = parent.parent
        if element is not None and element.type == nodes.ELEMENT and not nodes.is_fragment(element):
            _rewrite_expression_child(ctx, node, element, text)


def _rewrite_attribute_value(ctx: TraversalContext, node: Node, attr: Node, text: str) -> None:
    tree, rules = ctx.tree, ctx.rules
    prop = nodes.attribute_name(tree, attr)
    if prop is None or is_ignored_prop(rules, prop):
        return
    element = nodes.attribute_element(attr)
    if element is None:
        return
    name = nodes.element_name(tree, element)
    if not rules.is_translatable_prop(name, prop):
        return
    key = generate_key(ctx, Candidate(text=text, depth=depth(node), enclosing=element, enclosing_name=name, prop_name=prop))
    ctx.rewriter.replace(node, "{" + lookup_call(ctx, key) + "}")


def _rewrite_expression_child(ctx: TraversalContext, node: Node, element: Node, text: str) -> None:
    name = nodes.element_name(ctx.tree, element)
    if is_ignored_prop(ctx.rules, name):
        return
    key = generate_key(ctx, Candidate(text=text, depth=depth(node), enclosing=element, enclosing_name=name))
    ctx.rewriter.replace(node, lookup_call(ctx, key))


# ── FRAGMENT ──────────────────────────────────────────────────────────────────

def _handle_fragment(ctx: TraversalContext, node: Node) -> None:
    tree = ctx.tree
    for child in node.children:
        if child.type in nodes.TEXT_PIECE_TYPES:
            _rewrite_text_run(ctx, child, node, FRAGMENT_NAME, depth(node))
        elif child.type == "jsx_expression":
            expr = nodes.sole_expression(child)
            if expr is None or expr.type not in nodes.STRING_TYPES or ctx.rewriter.covers(expr):
                continue
            text = nodes.string_value(tree, expr)
            if nodes.is_blank(text) or is_already_translated(tree, child, ctx.rules):
                continue
            if is_ignored_prop(ctx.rules, FRAGMENT_NAME):
                continue
            key = generate_key(ctx, Candidate(text=text, depth=depth(node), enclosing=node, enclosing_name=FRAGMENT_NAME))
            ctx.rewriter.replace(expr, lookup_call(ctx, key))


# ── TEXT ──────────────────────────────────────────────────────────────────────

def _rewrite_text_run(
    ctx: TraversalContext, first: Node, container: Node, name: Optional[str], level: int
) -> None:
    tree = ctx.tree
    run = nodes.text_run(tree, first)
    if not run:
        return
    span = nodes.trimmed_span(tree.source, run[0].start_byte, run[-1].end_byte)
    if span is None:
        return
    start, end = span
    text = nodes.jsx_text_value(tree.source[start:end].decode("utf-8"))
    if nodes.is_blank(text):
        return
    if ctx.rewriter.covers_range(start, end):
        return
    key = generate_key(ctx, Candidate(text=text, depth=level, enclosing=container, enclosing_name=name))
    ctx.rewriter.replace_range(start, end, "{" + lookup_call(ctx, key) + "}")


def _handle_text(ctx: TraversalContext, node: Node) -> None:
    parent = node.parent
    if parent is None or parent.type != nodes.ELEMENT or nodes.is_fragment(parent):
        return
    _rewrite_text_run(ctx, node, parent, nodes.element_name(ctx.tree, parent), depth(node))


# ── ARRAY_DECLARATOR ──────────────────────────────────────────────────────────

def _handle_array_declarator(ctx: TraversalContext, node: Node) -> None:
    tree, rules = ctx.tree, ctx.rules
    name = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    if name is None or name.type != "identifier" or value is None or value.type != "array":
        return
    variable = tree.text(name)
    for index, item in enumerate(nodes.named_children(value)):
        if item.type != "object":
            continue
        for prop in nodes.named_children(item):
            if prop.type != "pair":
                continue
            key_node = prop.child_by_field_name("key")
            val = prop.child_by_field_name("value")
            if key_node is None or key_node.type != "property_identifier" or val is None:
                continue
            prop_name = tree.text(key_node)
            if is_ignored_prop(rules, prop_name):
                continue
            text = nodes.string_value(tree, val)
            if nodes.is_blank(text) or ctx.rewriter.covers(val):
                continue
            key = array_record_key(ctx, variable, prop_name, index, text)
            ctx.rewriter.replace(val, lookup_call(ctx, key))


# ── OBJECT_PROPERTY ───────────────────────────────────────────────────────────

def _handle_object_property(ctx: TraversalContext, node: Node) -> None:
    tree, rules = ctx.tree, ctx.rules
    key_node = node.child_by_field_name("key")
    val = node.child_by_field_name("value")
    if key_node is None or key_node.type != "property_identifier" or val is None:
        return
    prop_name = tree.text(key_node)
    if is_ignored_prop(rules, prop_name):
        return
    text = nodes.string_value(tree, val)
    if nodes.is_blank(text) or ctx.rewriter.covers(val):
        return
    call = nodes.nearest_ancestor(node, "call_expression")
    if call is None:
        return
    callee = call.child_by_field_name("function")
    if callee is None or callee.type != "identifier":
        return
    callee_name = tree.text(callee)
    if callee_name == rules.runtime.lookup:
        return
    key = call_argument_key(ctx, callee_name, prop_name, text)
    ctx.rewriter.replace(val, lookup_call(ctx, key))


def _handle_other(ctx: TraversalContext, node: Node) -> None:
    return None


HANDLERS: Dict[NodeKind, Callable[[TraversalContext, Node], None]] = {
    NodeKind.STRING: _handle_string,
    NodeKind.FRAGMENT: _handle_fragment,
    NodeKind.TEXT: _handle_text,
    NodeKind.ARRAY_DECLARATOR: _handle_array_declarator,
    NodeKind.OBJECT_PROPERTY: _handle_object_property,
    NodeKind.OTHER: _handle_other,
}


def traverse(tree: SourceTree, rules: RuleConfig) -> TraversalContext:
    """Walk one file and record every rewrite. Returns the (fresh) context for that file."""
    ctx = TraversalContext.for_tree(tree, rules)
    for node in tree.walk():
        HANDLERS[node_kind(node)](ctx, node)
    logger.debug("traversal produced %d keys, %d edits", len(ctx.key_table), len(ctx.rewriter))
    return ctx
