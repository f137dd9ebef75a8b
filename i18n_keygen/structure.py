"""Node classification and container depth, the two structural inputs of a key name."""
from __future__ import annotations

from tree_sitter import Node

from i18n_keygen import nodes
from i18n_keygen.config import DEFAULT_CATEGORY, RuleConfig
from i18n_keygen.parser import SourceTree

FRAGMENT_NAME = "Fragment"

# Band limits are part of the key format; changing them renames existing keys.
SECTION_MAX_DEPTH = 3
PART_MAX_DEPTH = 5


def classify(tree: SourceTree, node: Node, rules: RuleConfig) -> str:
    """Coarse category of a structural node ("Title", "Subtitle", "Text", ...)."""
    if nodes.is_fragment(node):
        return rules.node_type_map.get(FRAGMENT_NAME) or DEFAULT_CATEGORY
    if nodes.is_named_element(node):
        name = nodes.element_name(tree, node)
        if name:
            return rules.node_type_map.get(name.lower()) or DEFAULT_CATEGORY
    return DEFAULT_CATEGORY


def depth(node: Node) -> int:
    """Number of element/fragment ancestors above `node`.

    Expression containers, attributes, opening tags and call arguments are
    transparent, so `{"x"}` sits at the same depth as `x`.
    """
    count = 0
    current = node.parent
    while current is not None:
        if nodes.is_container(current):
            count += 1
        current = current.parent
    return count


def depth_band(value: int) -> str:
    if value <= SECTION_MAX_DEPTH:
        return "Section"
    if value <= PART_MAX_DEPTH:
        return "Part"
    return "Area"
