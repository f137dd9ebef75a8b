"""
Infer component rules from code that is already translated by hand.

A `<Combobox placeholder={t("...")}>` anywhere in the project marks
`Combobox.placeholder` as translatable; a component with non-blank text
children is marked `textChild`. The result has the config document shape and
can be saved as i18n-config.json.
"""
from __future__ import annotations

import logging
import pathlib
from typing import Any, Dict, Iterable, Optional, Set

from tree_sitter import Node

from i18n_keygen import nodes
from i18n_keygen.config import RuntimeNames
from i18n_keygen.parser import ParseError, SourceParser, SourceTree

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_PROPS = ("className", "id", "key", "style")


class RuleCollector:
    def __init__(self, runtime: Optional[RuntimeNames] = None):
        self.runtime = runtime or RuntimeNames()
        self.props: Dict[str, Set[str]] = {}
        self.text_child: Set[str] = set()

    def _is_translation_call(self, tree: SourceTree, node: Optional[Node]) -> bool:
        if node is not None and node.type == "jsx_expression":
            node = nodes.sole_expression(node)
        if node is None or node.type != "call_expression":
            return False
        callee = node.child_by_field_name("function")
        return (
            callee is not None
            and callee.type == "identifier"
            and tree.text(callee) in (self.runtime.lookup, self.runtime.client_accessor)
        )

    def _component_of(self, tree: SourceTree, node: Node) -> Optional[str]:
        current = node.parent
        while current is not None:
            if nodes.is_named_element(current):
                return nodes.element_name(tree, current)
            current = current.parent
        return None

    def _attribute(self, tree: SourceTree, attr: Node) -> None:
        prop = nodes.attribute_name(tree, attr)
        element = nodes.attribute_element(attr)
        if prop is None or element is None:
            return
        value = None
        for child in nodes.named_children(attr):
            if child.type == "jsx_expression":
                value = child
        if not self._is_translation_call(tree, value):
            return
        name = nodes.element_name(tree, element)
        if name:
            self.props.setdefault(name, set()).add(prop)

    def _text(self, tree: SourceTree, node: Node) -> None:
        if nodes.is_blank(tree.text(node)):
            return
        name = self._component_of(tree, node)
        if name:
            self.props.setdefault(name, set())
            self.text_child.add(name)

    def collect(self, tree: SourceTree) -> None:
        for node in tree.walk():
            if node.type == "jsx_attribute":
                self._attribute(tree, node)
            elif node.type == "jsx_text":
                self._text(tree, node)

    def document(self) -> Dict[str, Any]:
        components: Dict[str, Any] = {}
        for name in sorted(self.props):
            entry: Dict[str, Any] = {"props": sorted(self.props[name])}
            if name in self.text_child:
                entry["textChild"] = True
            components[name] = entry
        return {"components": components, "ignoreProps": sorted(DEFAULT_IGNORE_PROPS)}


def infer_rules(
    paths: Iterable[pathlib.Path],
    parser: Optional[SourceParser] = None,
    runtime: Optional[RuntimeNames] = None,
) -> Dict[str, Any]:
    """Scan `paths` and return an inferred config document. Unparsable files are skipped."""
    parser = parser or SourceParser()
    collector = RuleCollector(runtime)
    count = 0
    for path in paths:
        try:
            tree = parser.parse_file(pathlib.Path(path))
        except (OSError, UnicodeDecodeError, ParseError) as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        collector.collect(tree)
        count += 1
    logger.info("Analyzed %d files, found %d components", count, len(collector.props))
    return collector.document()
