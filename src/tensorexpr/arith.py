"""Elementwise arithmetic with eager algebraic simplification.

Every operator validates its operands, then tries its shortcut table in a
fixed order before falling back to one of two outcomes:

- eager: both operands are ``Concrete``, so a new buffer is computed now;
- deferred: some operand is unresolved, so a new tree node is built and no
  numeric work is done.

Shortcut checks only ever look at ``Concrete`` operands. A variable's current
value is never read here, which is what lets ``variable * 0`` collapse to a
concrete zero tensor that keeps no reference to the variable.
"""

from __future__ import annotations

import logging
import numbers
from typing import Iterable, Union

import numpy as np

from tensorexpr.ir.buffer import DenseBuffer
from tensorexpr.ir.dtypes import float32
from tensorexpr.ir.errors import DivisionByZeroError, ShapeMismatchError
from tensorexpr.ir.node import BinaryOp, Concrete, Node, OpKind, Reshape, ScalarOp

logger = logging.getLogger(__name__)

Operand = Union[Node, DenseBuffer]
Scalar = numbers.Real

_UFUNCS = {
    OpKind.ADD: np.add,
    OpKind.SUB: np.subtract,
    OpKind.MUL: np.multiply,
    OpKind.DIV: np.divide,
}


# =============================================================================
# Operand helpers
# =============================================================================


def as_node(value: Operand) -> Node:
    """Wrap a DenseBuffer as a Concrete leaf; pass nodes through."""
    if isinstance(value, Node):
        return value
    if isinstance(value, DenseBuffer):
        return Concrete(value)
    raise TypeError(f"Expected a Node or DenseBuffer, got {type(value).__name__}")


def _is_scalar(value: object) -> bool:
    return isinstance(value, numbers.Real)


def _as_scalar(value: Scalar) -> np.float32:
    return float32.np.type(value)


def _concrete_all(node: Node, value: float) -> bool:
    return isinstance(node, Concrete) and node.buffer.all_equal_to(value)


def _check_shapes(op: OpKind, left: Node, right: Node) -> None:
    if left.shape != right.shape:
        raise ShapeMismatchError(
            f"Incompatible shapes {left.shape} and {right.shape} for {op.name} "
            f"(no broadcasting)"
        )


def _zeros_like(node: Node) -> Concrete:
    return Concrete(DenseBuffer.constant(0.0, node.shape))


# =============================================================================
# Eager / deferred fallbacks
# =============================================================================


def _elementwise(op: OpKind, left: DenseBuffer, right: np.ndarray | np.float32) -> Concrete:
    # inf/NaN follow IEEE semantics; nothing is trapped.
    with np.errstate(all="ignore"):
        out = _UFUNCS[op](left.data, right, dtype=float32.np)
    return Concrete(DenseBuffer(out, left.shape))


def _combine(op: OpKind, left: Node, right: Node) -> Node:
    if isinstance(left, Concrete) and isinstance(right, Concrete):
        return _elementwise(op, left.buffer, right.buffer.data)
    logger.debug("deferring %s on %s and %s", op.name, left.kind, right.kind)
    return BinaryOp(op, left, right)


def _combine_scalar(op: OpKind, child: Node, scalar: np.float32) -> Node:
    if isinstance(child, Concrete):
        return _elementwise(op, child.buffer, scalar)
    logger.debug("deferring %s(%s, %s)", op.name, child.kind, scalar)
    return ScalarOp(op, child, float(scalar))


# =============================================================================
# Add / Subtract
# =============================================================================


def add(left: Operand, right: Operand | Scalar) -> Node:
    if _is_scalar(right):
        return add_scalar(left, right)
    left, right = as_node(left), as_node(right)
    _check_shapes(OpKind.ADD, left, right)
    if _concrete_all(left, 0.0):
        return right
    if _concrete_all(right, 0.0):
        return left
    return _combine(OpKind.ADD, left, right)


def add_scalar(node: Operand, scalar: Scalar) -> Node:
    node, s = as_node(node), _as_scalar(scalar)
    if s == 0.0:
        return node
    return _combine_scalar(OpKind.ADD, node, s)


def sub(left: Operand, right: Operand | Scalar) -> Node:
    if _is_scalar(right):
        return sub_scalar(left, right)
    left, right = as_node(left), as_node(right)
    _check_shapes(OpKind.SUB, left, right)
    if _concrete_all(left, 0.0):
        return neg(right)
    if _concrete_all(right, 0.0):
        return left
    return _combine(OpKind.SUB, left, right)


def sub_scalar(node: Operand, scalar: Scalar) -> Node:
    node, s = as_node(node), _as_scalar(scalar)
    if s == 0.0:
        return node
    return _combine_scalar(OpKind.SUB, node, s)


# =============================================================================
# Multiply / Negate
# =============================================================================


def mul(left: Operand, right: Operand | Scalar) -> Node:
    if _is_scalar(right):
        return mul_scalar(left, right)
    left, right = as_node(left), as_node(right)
    _check_shapes(OpKind.MUL, left, right)
    if _concrete_all(left, 1.0):
        return right
    if _concrete_all(right, 1.0):
        return left
    if _concrete_all(left, 0.0) or _concrete_all(right, 0.0):
        logger.debug("MUL absorbed by zero operand, shape %s", left.shape)
        return _zeros_like(left)
    return _combine(OpKind.MUL, left, right)


def mul_scalar(node: Operand, scalar: Scalar) -> Node:
    node, s = as_node(node), _as_scalar(scalar)
    if s == 1.0:
        return node
    if s == 0.0:
        logger.debug("MUL absorbed by zero scalar, shape %s", node.shape)
        return _zeros_like(node)
    return _combine_scalar(OpKind.MUL, node, s)


def neg(node: Operand) -> Node:
    return mul_scalar(node, -1.0)


# =============================================================================
# Divide
# =============================================================================


def div(left: Operand, right: Operand | Scalar) -> Node:
    if _is_scalar(right):
        return div_scalar(left, right)
    left, right = as_node(left), as_node(right)
    _check_shapes(OpKind.DIV, left, right)
    # The divisor check comes first, so 0 / 0 is an error rather than 0.
    if _concrete_all(right, 0.0):
        raise DivisionByZeroError(f"Division by an all-zero tensor of shape {right.shape}")
    if _concrete_all(right, 1.0):
        return left
    if _concrete_all(right, -1.0):
        return neg(left)
    if _concrete_all(left, 0.0):
        return left
    return _combine(OpKind.DIV, left, right)


def div_scalar(node: Operand, scalar: Scalar) -> Node:
    node, s = as_node(node), _as_scalar(scalar)
    if s == 0.0:
        raise DivisionByZeroError(f"Division by scalar zero (shape {node.shape})")
    if s == 1.0:
        return node
    if s == -1.0:
        return neg(node)
    return _combine_scalar(OpKind.DIV, node, s)


# =============================================================================
# Reshape
# =============================================================================


def reshape(node: Operand, shape: Iterable[int]) -> Node:
    """Reshape eagerly for Concrete leaves, otherwise wrap in a Reshape node.

    Reshape is never pushed through arithmetic nodes.
    """
    node = as_node(node)
    if isinstance(node, Concrete):
        return Concrete(node.buffer.reshape(shape))
    return Reshape(node, tuple(shape))
