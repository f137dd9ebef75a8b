"""
Edit buffer over the original source bytes.

tree-sitter trees are read-only, so a rewrite is recorded as "replace this
node's byte range" or "insert at this offset" and applied in one pass at the
end. Untouched bytes come out exactly as they went in, which keeps diffs
small when no formatter runs afterwards.
"""
from __future__ import annotations

import dataclasses
from typing import List

from tree_sitter import Node


@dataclasses.dataclass(frozen=True)
class Edit:
    start: int
    end: int
    text: str
    seq: int

    @property
    def is_insert(self) -> bool:
        return self.start == self.end


class Rewriter:
    def __init__(self, source: bytes):
        self.source = source
        self._edits: List[Edit] = []

    def __len__(self) -> int:
        return len(self._edits)

    @property
    def changed(self) -> bool:
        return bool(self._edits)

    def _overlaps(self, start: int, end: int) -> bool:
        for e in self._edits:
            if e.is_insert:
                if start < e.start < end:
                    return True
            elif start < e.end and e.start < end:
                return True
        return False

    def covers_range(self, start: int, end: int) -> bool:
        return self._overlaps(start, end)

    def covers(self, node: Node) -> bool:
        """True when `node` lies inside (or overlaps) a range that was already replaced."""
        return self._overlaps(node.start_byte, node.end_byte)

    def replace_range(self, start: int, end: int, text: str) -> bool:
        if start >= end or self._overlaps(start, end):
            return False
        self._edits.append(Edit(start, end, text, len(self._edits)))
        return True

    def replace(self, node: Node, text: str) -> bool:
        """Replace a node's bytes; refused (False) when it overlaps an earlier replacement."""
        return self.replace_range(node.start_byte, node.end_byte, text)

    def insert(self, offset: int, text: str) -> None:
        self._edits.append(Edit(offset, offset, text, len(self._edits)))

    def apply(self) -> str:
        ordered = sorted(self._edits, key=lambda e: (e.start, e.seq))
        out: List[bytes] = []
        pos = 0
        for e in ordered:
            out.append(self.source[pos:e.start])
            out.append(e.text.encode("utf-8"))
            pos = max(pos, e.end)
        out.append(self.source[pos:])
        return b"".join(out).decode("utf-8")
