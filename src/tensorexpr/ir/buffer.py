from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from .dtypes import DType, float32
from .errors import ShapeMismatchError


Shape = tuple[int, ...]


def as_shape(dims: Iterable[int]) -> Shape:
	shape = tuple(int(d) for d in dims)
	if any(d < 0 for d in shape):
		raise ShapeMismatchError(f"Negative dimension in shape {shape}")
	return shape


def numel(shape: Shape) -> int:
	n = 1
	for dim in shape:
		n *= dim
	return n


@dataclass(frozen=True, slots=True, eq=False)
class DenseBuffer:
	"""A fully known tensor value: flat float32 elements plus a shape.

	The elements are copied on construction and stored read-only, so a buffer
	never aliases another buffer or the caller's array.
	"""

	data: np.ndarray
	shape: Shape

	def __post_init__(self) -> None:
		shape = as_shape(self.shape)
		data = self.data
		if isinstance(data, Iterable) and not isinstance(data, (np.ndarray, Sequence)):
			data = np.fromiter(data, dtype=float32.np)
		data = np.array(data, dtype=float32.np).reshape(-1)
		if data.size != numel(shape):
			raise ShapeMismatchError(
				f"Data size {data.size} does not match shape {shape}"
			)
		data.flags.writeable = False
		object.__setattr__(self, "shape", shape)
		object.__setattr__(self, "data", data)

	@classmethod
	def constant(cls, value: float, shape: Iterable[int]) -> DenseBuffer:
		shape = as_shape(shape)
		return cls(np.full(numel(shape), value, dtype=float32.np), shape)

	@property
	def dtype(self) -> DType:
		return float32

	@property
	def rank(self) -> int:
		return len(self.shape)

	@property
	def numel(self) -> int:
		return int(self.data.size)

	@property
	def nbytes(self) -> int:
		return self.numel * float32.itemsize

	def all_equal_to(self, value: float) -> bool:
		"""Exact (not tolerance-based) comparison of every element with `value`."""
		return bool(np.all(self.data == float32.np.type(value)))

	def reshape(self, shape: Iterable[int]) -> DenseBuffer:
		shape = as_shape(shape)
		if numel(shape) != self.numel:
			raise ShapeMismatchError(f"Incompatible shapes {self.shape} and {shape}")
		return DenseBuffer(self.data, shape)

	def to_numpy(self) -> np.ndarray:
		return self.data.reshape(self.shape).copy()

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, DenseBuffer):
			return NotImplemented
		return self.shape == other.shape and bool(np.array_equal(self.data, other.data))

	def __hash__(self) -> int:
		# Adding +0.0 folds -0.0 into +0.0, which compare equal.
		return hash((self.shape, (self.data + float32.np.type(0.0)).tobytes()))

	def __repr__(self) -> str:
		data = np.array2string(self.data, threshold=16, separator=", ")
		return f"DenseBuffer(shape={self.shape}, data={data})"
