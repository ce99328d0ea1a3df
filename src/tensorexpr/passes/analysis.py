from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

import numpy as np

from tensorexpr.ir.node import BinaryOp, Concrete, Node, Reshape, ScalarOp, VariableRef


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal, left child first. Iterative, so deep trees are fine."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


@dataclass(slots=True)
class VariableCollector:
    """Collects the ids of variables referenced by a tree, in first-seen order."""

    def run(self, node: Node) -> list[int]:
        seen: dict[int, None] = {}
        for n in walk(node):
            if isinstance(n, VariableRef):
                seen.setdefault(n.var_id, None)
        return list(seen)


@dataclass(slots=True)
class TreeFormatter:
    """Indented structural dump of an expression tree.

    The format is meant for humans and is not stable.
    """

    max_elements: int = 8
    indent: str = "  "

    def run(self, node: Node) -> str:
        lines: list[str] = []
        stack: list[tuple[Node, int]] = [(node, 0)]
        while stack:
            current, depth = stack.pop()
            lines.append(f"{self.indent * depth}{self._label(current)}")
            for child in reversed(current.children):
                stack.append((child, depth + 1))
        return "\n".join(lines)

    def _label(self, node: Node) -> str:
        if isinstance(node, Concrete):
            data = np.array2string(
                node.buffer.data,
                threshold=self.max_elements,
                edgeitems=max(1, self.max_elements // 2),
                separator=", ",
            )
            return f"Concrete{node.shape} {data}"
        if isinstance(node, VariableRef):
            return f"Variable#{node.var_id}{node.shape}"
        if isinstance(node, Reshape):
            return f"Reshape{node.child.shape} -> {node.shape}"
        if isinstance(node, BinaryOp):
            return f"{node.op.name}{node.shape} [{node.op.symbol}]"
        if isinstance(node, ScalarOp):
            return f"{node.op.name}Scalar{node.shape} [{node.op.symbol} {node.scalar!r}]"
        raise TypeError(f"Unknown node type: {type(node).__name__}")
