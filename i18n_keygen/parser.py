"""
Parsing of TSX/JSX source text into a tree-sitter tree.

The TSX grammar from tree-sitter-typescript is a superset of what we need
(JavaScript, JSX, TypeScript), so it is used for every supported extension.
A tree that contains syntax errors is rejected as a whole: rewriting a file
we cannot fully parse would risk corrupting it.
"""
from __future__ import annotations

import dataclasses
import pathlib
from typing import Iterator, Optional

import tree_sitter_typescript as ts_typescript
from tree_sitter import Language, Node, Parser, Tree


class ParseError(ValueError):
    """Source text could not be parsed without syntax errors."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column


@dataclasses.dataclass
class SourceTree:
    """A parsed program plus the exact bytes it was parsed from."""
    tree: Tree
    source: bytes

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8")

    def walk(self) -> Iterator[Node]:
        """Pre-order traversal in document order."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


def _first_error(node: Node) -> Optional[Node]:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


class SourceParser:
    """Builds one tree-sitter Parser per call; the Language object is shared.

    tree-sitter parsers keep internal state while parsing, so a fresh parser per
    file lets several worker threads parse concurrently.
    """

    def __init__(self) -> None:
        self.language = Language(ts_typescript.language_tsx())

    def parse(self, source: str) -> SourceTree:
        data = source.encode("utf-8")
        tree = Parser(self.language).parse(data)
        if tree.root_node.has_error:
            bad = _first_error(tree.root_node)
            if bad is not None:
                row, col = bad.start_point
                raise ParseError(f"syntax error at line {row + 1}, column {col + 1}", line=row + 1, column=col + 1)
            raise ParseError("syntax error")
        return SourceTree(tree=tree, source=data)

    def parse_file(self, path: pathlib.Path) -> SourceTree:
        return self.parse(path.read_text(encoding="utf-8"))
