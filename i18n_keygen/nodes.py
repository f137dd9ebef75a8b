"""
Small accessors over tree-sitter JSX/TSX nodes.

tree-sitter grammars have changed shape across releases (fragments used to be
`jsx_fragment`, newer ones are a `jsx_element` whose opening tag has no name),
so every structural question the rewrite rules ask goes through here.
"""
from __future__ import annotations

import html
import re
from typing import List, Optional, Tuple

from tree_sitter import Node

from i18n_keygen.parser import SourceTree

ELEMENT = "jsx_element"
SELF_CLOSING = "jsx_self_closing_element"
FRAGMENT = "jsx_fragment"
CONTAINER_TYPES = frozenset({ELEMENT, SELF_CLOSING, FRAGMENT})

TEXT_PIECE_TYPES = frozenset({"jsx_text", "html_character_reference"})
ELEMENT_NAME_TYPES = frozenset({"identifier", "jsx_identifier", "member_expression", "nested_identifier", "jsx_namespace_name"})
STRING_TYPES = frozenset({"string"})

JS_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")
JS_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
WHITESPACE = b" \t\r\n"


def opening_tag(node: Node) -> Optional[Node]:
    """The node that carries the tag name and attributes of an element."""
    if node.type == SELF_CLOSING:
        return node
    if node.type != ELEMENT:
        return None
    tag = node.child_by_field_name("open_tag")
    if tag is not None:
        return tag
    for child in node.children:
        if child.type == "jsx_opening_element":
            return child
    return None


def _tag_name_node(tag: Node) -> Optional[Node]:
    name = tag.child_by_field_name("name")
    if name is not None:
        return name
    for child in tag.named_children:
        if child.type in ELEMENT_NAME_TYPES:
            return child
    return None


def is_fragment(node: Node) -> bool:
    if node.type == FRAGMENT:
        return True
    if node.type != ELEMENT:
        return False
    tag = opening_tag(node)
    return tag is not None and _tag_name_node(tag) is None


def is_container(node: Node) -> bool:
    return node.type in CONTAINER_TYPES


def is_named_element(node: Node) -> bool:
    return node.type in (ELEMENT, SELF_CLOSING) and not is_fragment(node)


def element_name(tree: SourceTree, node: Node) -> Optional[str]:
    """Plain identifier tag name (`div`, `Combobox`); None for `Foo.Bar`, `a:b` and fragments."""
    tag = opening_tag(node)
    if tag is None:
        return None
    name = _tag_name_node(tag)
    if name is None or name.type not in ("identifier", "jsx_identifier"):
        return None
    return tree.text(name)


def attribute_name(tree: SourceTree, attr: Node) -> Optional[str]:
    """Name of a `jsx_attribute`; None when it is namespaced or otherwise not an identifier."""
    for child in attr.children:
        if child.type in ("property_identifier", "identifier", "jsx_identifier"):
            return tree.text(child)
        if child.is_named:
            return None
    return None


def attribute_element(attr: Node) -> Optional[Node]:
    """The element (self-closing or with children) an attribute belongs to."""
    parent = attr.parent
    if parent is None:
        return None
    if parent.type == SELF_CLOSING:
        return parent
    if parent.type == "jsx_opening_element" and parent.parent is not None and parent.parent.type == ELEMENT:
        return parent.parent
    return None


def _decode_js_escape(m: re.Match) -> str:
    esc = m.group(1)
    if esc.startswith("u{"):
        return chr(int(esc[2:-1], 16))
    if esc.startswith("u") and len(esc) == 5:
        return chr(int(esc[1:], 16))
    if esc.startswith("x") and len(esc) == 3:
        return chr(int(esc[1:], 16))
    if esc in ("\n", "\r\n", "\r", "\u2028", "\u2029"):
        return ""  # line continuation
    return JS_SIMPLE_ESCAPES.get(esc, esc)


def string_value(tree: SourceTree, node: Node) -> Optional[str]:
    """Decoded value of a string literal node, or None for anything that is not one.

    JSX attribute strings are HTML-ish (entities, no backslash escapes); ordinary
    JS strings use backslash escapes.
    """
    if node.type not in STRING_TYPES:
        return None
    raw = tree.text(node)
    if len(raw) < 2 or raw[0] not in "\"'" or raw[-1] != raw[0]:
        return None
    inner = raw[1:-1]
    if node.parent is not None and node.parent.type == "jsx_attribute":
        return html.unescape(inner)
    return JS_ESCAPE_RE.sub(_decode_js_escape, inner)


def is_blank(text: Optional[str]) -> bool:
    return text is None or not text.strip()


def named_children(node: Node) -> List[Node]:
    return [c for c in node.named_children if c.type != "comment"]


def sole_expression(container: Node) -> Optional[Node]:
    """The single expression inside a `{ ... }` JSX container, if there is exactly one."""
    if container.type != "jsx_expression":
        return None
    inner = named_children(container)
    return inner[0] if len(inner) == 1 else None


def call_parent(node: Node) -> Optional[Node]:
    """Parent of a node, looking through the `arguments` list of a call."""
    parent = node.parent
    if parent is not None and parent.type == "arguments":
        return parent.parent
    return parent


def nearest_ancestor(node: Node, node_type: str) -> Optional[Node]:
    current = node.parent
    while current is not None:
        if current.type == node_type:
            return current
        current = current.parent
    return None


def _joined(tree: SourceTree, left: Node, right: Node) -> bool:
    """Two text pieces belong to one run when only whitespace separates them."""
    if left.type not in TEXT_PIECE_TYPES or right.type not in TEXT_PIECE_TYPES:
        return False
    return not tree.source[left.end_byte:right.start_byte].strip(WHITESPACE)


def text_run(tree: SourceTree, node: Node) -> Optional[List[Node]]:
    """Adjacent JSX text pieces starting at `node`.

    Newer grammars split multi-line text and entities into several sibling
    pieces. Returns None when `node` continues a run that starts at an earlier
    sibling, so that a run is handled once, from its first piece.
    """
    if node.type not in TEXT_PIECE_TYPES:
        return None
    prev = node.prev_sibling
    if prev is not None and _joined(tree, prev, node):
        return None
    run = [node]
    nxt = node.next_sibling
    while nxt is not None and _joined(tree, run[-1], nxt):
        run.append(nxt)
        nxt = nxt.next_sibling
    return run


def trimmed_span(source: bytes, start: int, end: int) -> Optional[Tuple[int, int]]:
    """Byte span of [start, end) without leading/trailing whitespace; None if nothing is left."""
    chunk = source[start:end]
    stripped = chunk.strip(WHITESPACE)
    if not stripped:
        return None
    lead = len(chunk) - len(chunk.lstrip(WHITESPACE))
    return start + lead, start + lead + len(stripped)


def jsx_text_value(raw: str) -> str:
    """Text as JSX renders it: lines trimmed, blank lines dropped, joined by a space, entities decoded."""
    lines = [line.strip() for line in raw.splitlines()]
    return html.unescape(" ".join(line for line in lines if line))
