from .buffer import DenseBuffer, Shape, as_shape, numel
from .dtypes import DType, float32
from .errors import DivisionByZeroError, ShapeMismatchError, TensorExprError
from .node import BinaryOp, Concrete, Node, OpKind, Reshape, ScalarOp, VariableRef

__all__ = [
	"DType",
	"float32",
	"DenseBuffer",
	"Shape",
	"as_shape",
	"numel",
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
]
