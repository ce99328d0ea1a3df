"""tensorexpr: lazy tensor expressions with eager algebraic simplification.

Arithmetic on fully known tensors is computed immediately; arithmetic that
touches a mutable variable builds an expression node instead. Algebraic
identities (x + 0, x * 1, x * 0, ...) collapse at construction time.
"""

from typing import Iterable

from .arith import (
    add,
    add_scalar,
    div,
    div_scalar,
    mul,
    mul_scalar,
    neg,
    reshape,
    sub,
    sub_scalar,
)
from .ir.buffer import DenseBuffer
from .ir.dtypes import DType, float32
from .ir.errors import DivisionByZeroError, ShapeMismatchError, TensorExprError
from .ir.node import BinaryOp, Concrete, Node, OpKind, Reshape, ScalarOp, VariableRef
from .variables import ArenaConfig, VariableArena, VariableHandle, default_arena, new_variable


def tensor(data: Iterable[float], shape: Iterable[int]) -> Concrete:
    """Concrete leaf from flat data and a shape."""
    return Concrete(DenseBuffer(data, shape))


def constant(value: float, shape: Iterable[int]) -> Concrete:
    """Concrete leaf with every element equal to `value`."""
    return Concrete(DenseBuffer.constant(value, shape))


__all__ = [
    "DType",
    "float32",
    "DenseBuffer",
    "Node",
    "OpKind",
    "Concrete",
    "VariableRef",
    "Reshape",
    "BinaryOp",
    "ScalarOp",
    "TensorExprError",
    "ShapeMismatchError",
    "DivisionByZeroError",
    "ArenaConfig",
    "VariableArena",
    "VariableHandle",
    "default_arena",
    "new_variable",
    "tensor",
    "constant",
    "add",
    "add_scalar",
    "sub",
    "sub_scalar",
    "mul",
    "mul_scalar",
    "div",
    "div_scalar",
    "neg",
    "reshape",
]
