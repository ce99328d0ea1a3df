from __future__ import annotations


class TensorExprError(Exception):
	"""Base class for tensorexpr-specific exceptions."""


class ShapeMismatchError(TensorExprError, ValueError):
	"""Element counts or per-dimension sizes disagree."""


class DivisionByZeroError(TensorExprError, ZeroDivisionError):
	"""Divisor is the scalar 0.0 or an all-zero tensor."""
