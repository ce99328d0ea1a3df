from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable

import numpy as np

from .buffer import DenseBuffer, Shape, as_shape, numel
from .dtypes import DType, float32
from .errors import ShapeMismatchError

if TYPE_CHECKING:
	from ..variables import VariableArena


class OpKind(Enum):
	ADD = "add"
	SUB = "sub"
	MUL = "mul"
	DIV = "div"

	@property
	def symbol(self) -> str:
		return {"add": "+", "sub": "-", "mul": "*", "div": "/"}[self.value]


def _is_operand(value: object) -> bool:
	return isinstance(value, (Node, DenseBuffer, numbers.Real))


class Node:
	"""Base class for expression tree nodes.

	Every subclass carries a `shape` attribute fixed at construction time, so
	asking a deep tree for its shape never walks it.
	"""

	__slots__ = ()

	# Make numpy arrays and scalars hand mixed operators back to us.
	__array_ufunc__ = None

	shape: Shape

	@property
	def kind(self) -> str:
		return self.__class__.__name__

	@property
	def dtype(self) -> DType:
		return float32

	@property
	def rank(self) -> int:
		return len(self.shape)

	@property
	def numel(self) -> int:
		return numel(self.shape)

	@property
	def children(self) -> tuple[Node, ...]:
		return ()

	@property
	def is_resolved(self) -> bool:
		return False

	def reshape(self, shape: Iterable[int]) -> Node:
		from .. import arith

		return arith.reshape(self, shape)

	def variables(self) -> list[int]:
		from ..passes.analysis import VariableCollector

		return VariableCollector().run(self)

	def summary(self) -> str:
		from ..passes.analysis import TreeFormatter

		return TreeFormatter().run(self)

	# Operators. The right-hand side may be a node, a DenseBuffer or a scalar.

	def __add__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		return arith.add(self, other)

	def __radd__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		if isinstance(other, numbers.Real):
			return arith.add_scalar(self, other)
		return arith.add(other, self)

	def __sub__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		return arith.sub(self, other)

	def __rsub__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		if isinstance(other, numbers.Real):
			other = DenseBuffer.constant(other, self.shape)
		return arith.sub(other, self)

	def __mul__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		return arith.mul(self, other)

	def __rmul__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		if isinstance(other, numbers.Real):
			return arith.mul_scalar(self, other)
		return arith.mul(other, self)

	def __truediv__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		return arith.div(self, other)

	def __rtruediv__(self, other: object) -> Node:
		from .. import arith

		if not _is_operand(other):
			return NotImplemented
		if isinstance(other, numbers.Real):
			other = DenseBuffer.constant(other, self.shape)
		return arith.div(other, self)

	def __neg__(self) -> Node:
		from .. import arith

		return arith.neg(self)

	# Structural repr, equality and hash. All three use an explicit stack so
	# that trees deeper than the interpreter's recursion limit still work.

	def _local_key(self) -> tuple:
		"""Fields other than the children that identify this node."""
		raise NotImplementedError

	def _repr_fields(self) -> tuple[list[str], list[str]]:
		"""Field reprs printed before and after the children."""
		raise NotImplementedError

	def __repr__(self) -> str:
		parts: list[str] = []
		stack: list[Node | str] = [self]
		while stack:
			item = stack.pop()
			if isinstance(item, str):
				parts.append(item)
				continue
			before, after = item._repr_fields()
			pieces = [*before, *item.children, *after]
			parts.append(f"{item.kind}(")
			stack.append(")")
			for j in range(len(pieces) - 1, -1, -1):
				stack.append(pieces[j])
				if j > 0:
					stack.append(", ")
		return "".join(parts)

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, Node):
			return NotImplemented
		stack: list[tuple[Node, Node]] = [(self, other)]
		while stack:
			a, b = stack.pop()
			if a is b:
				continue
			if type(a) is not type(b) or a._local_key() != b._local_key():
				return False
			stack.extend(zip(a.children, b.children))
		return True

	def __hash__(self) -> int:
		from ..passes.analysis import walk

		hashes: dict[int, int] = {}
		for n in reversed(list(walk(self))):
			if id(n) not in hashes:
				child_hashes = tuple(hashes[id(c)] for c in n.children)
				hashes[id(n)] = hash((n.kind, n._local_key(), child_hashes))
		return hashes[id(self)]


@dataclass(frozen=True, slots=True, repr=False, eq=False)
class Concrete(Node):
	"""Fully resolved leaf."""

	buffer: DenseBuffer
	shape: Shape = field(init=False)

	def __post_init__(self) -> None:
		object.__setattr__(self, "shape", self.buffer.shape)

	@property
	def is_resolved(self) -> bool:
		return True

	def _local_key(self) -> tuple:
		return (self.buffer,)

	def _repr_fields(self) -> tuple[list[str], list[str]]:
		return [repr(self.buffer)], []


@dataclass(frozen=True, slots=True, repr=False, eq=False)
class VariableRef(Node):
	"""Unresolved leaf pointing at a slot in a VariableArena.

	The node never copies the value in; `value` reads whatever the slot holds
	right now.
	"""

	var_id: int
	shape: Shape
	arena: VariableArena

	def __post_init__(self) -> None:
		object.__setattr__(self, "shape", as_shape(self.shape))

	@property
	def value(self) -> DenseBuffer:
		return self.arena.get(self.var_id)

	def _local_key(self) -> tuple:
		return (self.var_id, self.shape)

	def _repr_fields(self) -> tuple[list[str], list[str]]:
		return [f"var_id={self.var_id}", f"shape={self.shape}"], []


@dataclass(frozen=True, slots=True, repr=False, eq=False)
class Reshape(Node):
	child: Node
	shape: Shape

	def __post_init__(self) -> None:
		shape = as_shape(self.shape)
		if numel(shape) != self.child.numel:
			raise ShapeMismatchError(
				f"Incompatible shapes {self.child.shape} and {shape}"
			)
		object.__setattr__(self, "shape", shape)

	@property
	def children(self) -> tuple[Node, ...]:
		return (self.child,)

	def _local_key(self) -> tuple:
		return (self.shape,)

	def _repr_fields(self) -> tuple[list[str], list[str]]:
		return [], [f"shape={self.shape}"]


@dataclass(frozen=True, slots=True, repr=False, eq=False)
class BinaryOp(Node):
	"""Deferred elementwise op between two same-shape operands."""

	op: OpKind
	left: Node
	right: Node
	shape: Shape = field(init=False)

	def __post_init__(self) -> None:
		if self.left.shape != self.right.shape:
			raise ShapeMismatchError(
				f"{self.op.name} requires identical shapes (no broadcasting): "
				f"{self.left.shape} and {self.right.shape}"
			)
		object.__setattr__(self, "shape", self.left.shape)

	@property
	def children(self) -> tuple[Node, ...]:
		return (self.left, self.right)

	def _local_key(self) -> tuple:
		return (self.op,)

	def _repr_fields(self) -> tuple[list[str], list[str]]:
		return [self.op.name], []


@dataclass(frozen=True, slots=True, repr=False, eq=False)
class ScalarOp(Node):
	"""Deferred elementwise op between a tensor and a float32 scalar."""

	op: OpKind
	child: Node
	scalar: float
	shape: Shape = field(init=False)

	def __post_init__(self) -> None:
		object.__setattr__(self, "scalar", float(np.float32(self.scalar)))
		object.__setattr__(self, "shape", self.child.shape)

	@property
	def children(self) -> tuple[Node, ...]:
		return (self.child,)

	def _local_key(self) -> tuple:
		return (self.op, self.scalar)

	def _repr_fields(self) -> tuple[list[str], list[str]]:
		return [self.op.name], [repr(self.scalar)]
