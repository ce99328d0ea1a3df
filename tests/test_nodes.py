import pytest

from tensorexpr import (
	BinaryOp,
	Concrete,
	DenseBuffer,
	OpKind,
	Reshape,
	ScalarOp,
	ShapeMismatchError,
	VariableRef,
	constant,
	new_variable,
	reshape,
	tensor,
)


def test_concrete_reports_buffer_shape() -> None:
	x = tensor([1, 2, 3, 4, 5, 6], (2, 3))
	assert x.shape == (2, 3)
	assert x.rank == 2
	assert x.numel == 6
	assert x.is_resolved
	assert x.children == ()


def test_variable_reports_initial_shape(arena) -> None:
	v, var_id, _ = new_variable(DenseBuffer.constant(0.0, (4, 2)), arena=arena)
	assert isinstance(v, VariableRef)
	assert v.var_id == var_id
	assert v.shape == (4, 2)
	assert not v.is_resolved


def test_binary_op_shape_is_left_shape(arena) -> None:
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2, 3)), arena=arena)
	node = BinaryOp(OpKind.ADD, v, constant(1.0, (2, 3)))
	assert node.shape == (2, 3)
	assert node.children == (node.left, node.right)


def test_binary_op_rejects_mismatched_children(arena) -> None:
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2, 3)), arena=arena)
	with pytest.raises(ShapeMismatchError):
		BinaryOp(OpKind.MUL, v, constant(1.0, (3, 2)))


def test_scalar_op_rounds_scalar_to_float32(arena) -> None:
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2,)), arena=arena)
	node = ScalarOp(OpKind.ADD, v, 0.1)
	assert node.scalar != 0.1
	assert node.shape == (2,)


def test_reshape_concrete_is_eager() -> None:
	x = tensor([1, 2, 3, 4, 5, 6], (2, 3))
	y = reshape(x, (3, 2))
	assert isinstance(y, Concrete)
	assert y.shape == (3, 2)
	assert y.buffer.data.tolist() == [1, 2, 3, 4, 5, 6]


def test_reshape_round_trip_restores_value() -> None:
	x = tensor([1, 2, 3, 4, 5, 6], (2, 3))
	assert x.reshape((6,)).reshape((2, 3)) == x


def test_reshape_rejects_element_count_change(arena) -> None:
	x = constant(1.0, (2, 3))
	with pytest.raises(ShapeMismatchError):
		reshape(x, (4, 2))
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2, 3)), arena=arena)
	with pytest.raises(ShapeMismatchError):
		v.reshape((5,))


def test_reshape_of_variable_wraps(arena) -> None:
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2, 3)), arena=arena)
	r = v.reshape((3, 2))
	assert isinstance(r, Reshape)
	assert r.child is v
	assert r.shape == (3, 2)

	rr = r.reshape((6,))
	assert isinstance(rr, Reshape)
	assert rr.child is r


def test_reshape_not_pushed_through_arithmetic(arena) -> None:
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2, 3)), arena=arena)
	expr = v + constant(1.0, (2, 3))
	r = expr.reshape((6,))
	assert isinstance(r, Reshape)
	assert r.child == expr
	assert (r + constant(2.0, (6,))).shape == (6,)


def test_structural_equality(arena) -> None:
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2, 2)), arena=arena)
	a = v * 3.0
	b = v * 3.0
	assert a == b
	assert hash(a) == hash(b)
	assert a != v * 4.0


def test_repr_is_structural(arena) -> None:
	v, var_id, _ = new_variable(DenseBuffer.constant(0.0, (2, 2)), arena=arena)
	text = repr(v + 1.0)
	assert "ScalarOp" in text
	assert f"var_id={var_id}" in text


def test_tensor_accepts_generator() -> None:
	x = tensor((float(i) for i in range(4)), (2, 2))
	assert x.shape == (2, 2)
	assert x.buffer.data.tolist() == [0.0, 1.0, 2.0, 3.0]


def test_variable_ref_normalises_shape(arena) -> None:
	node, var_id, _ = new_variable(DenseBuffer.constant(0.0, (2,)), arena=arena)
	by_hand = VariableRef(var_id, [2], arena)
	assert by_hand.shape == (2,)
	assert by_hand == node
	assert hash(by_hand) == hash(node)
	assert isinstance(by_hand + constant(1.0, (2,)), BinaryOp)


def test_concrete_nodes_with_signed_zeros_dedupe() -> None:
	assert len({constant(0.0, (2,)), constant(-0.0, (2,))}) == 1


def test_repr_lists_children_in_order(arena) -> None:
	v, var_id, _ = new_variable(DenseBuffer.constant(0.0, (2,)), arena=arena)
	expr = (v + constant(1.0, (2,))).reshape((1, 2)) * 3.0
	assert repr(expr) == (
		f"ScalarOp(MUL, Reshape(BinaryOp(ADD, VariableRef(var_id={var_id}, shape=(2,)), "
		"Concrete(DenseBuffer(shape=(2,), data=[1., 1.]))), shape=(1, 2)), 3.0)"
	)


def test_different_structure_compares_unequal(arena) -> None:
	v, _, _ = new_variable(DenseBuffer.constant(0.0, (2,)), arena=arena)
	assert v + 1.0 != v - 1.0
	assert v + 1.0 != v + 2.0
	assert v * constant(2.0, (2,)) != constant(2.0, (2,)) * v
	assert (v + 1.0) != "v"
