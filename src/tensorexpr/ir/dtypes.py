from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class DType:
	"""Element dtype for dense buffers.

	Only single-precision floats exist; the type still lives in one place so
	buffers, nodes and the arena agree on the numpy representation.
	"""

	name: str
	itemsize: int

	@property
	def np(self) -> np.dtype:
		return np.dtype(self.name)

	def __str__(self) -> str:  # pragma: no cover
		return self.name


float32 = DType("float32", 4)
