import numpy as np
import pytest

from tensorexpr.ir import DenseBuffer, ShapeMismatchError, float32


def test_construct_keeps_data_and_shape() -> None:
	buf = DenseBuffer([1, 2, 3, 4, 5, 6], (2, 3))
	assert buf.shape == (2, 3)
	assert buf.numel == 6
	assert buf.rank == 2
	assert buf.data.dtype == np.float32
	assert buf.to_numpy().tolist() == [[1, 2, 3], [4, 5, 6]]


def test_construct_rejects_size_mismatch() -> None:
	with pytest.raises(ShapeMismatchError):
		DenseBuffer([1.0, 2.0, 3.0], (2, 2))


def test_negative_dimension_rejected() -> None:
	with pytest.raises(ShapeMismatchError):
		DenseBuffer([], (2, -1))


def test_scalar_shape_holds_one_element() -> None:
	buf = DenseBuffer([4.0], ())
	assert buf.numel == 1
	assert buf.rank == 0


def test_constant_fills_every_element() -> None:
	buf = DenseBuffer.constant(2.5, [3, 2])
	assert buf.shape == (3, 2)
	assert buf.all_equal_to(2.5)
	assert buf.nbytes == 6 * float32.itemsize


def test_all_equal_to_is_exact() -> None:
	buf = DenseBuffer([1.0, 1.0 + 1e-6], (2,))
	assert not buf.all_equal_to(1.0)
	assert DenseBuffer([0.0, -0.0], (2,)).all_equal_to(0.0)


def test_input_array_is_copied() -> None:
	src = np.ones((2, 2), dtype=np.float32)
	buf = DenseBuffer(src, (2, 2))
	src[0, 0] = 7.0
	assert buf.all_equal_to(1.0)


def test_buffer_data_is_read_only() -> None:
	buf = DenseBuffer.constant(1.0, (4,))
	with pytest.raises(ValueError):
		buf.data[0] = 3.0


def test_reshape_keeps_elements() -> None:
	buf = DenseBuffer([1, 2, 3, 4, 5, 6], (2, 3))
	out = buf.reshape((3, 2))
	assert out.shape == (3, 2)
	assert out.data.tolist() == buf.data.tolist()
	with pytest.raises(ShapeMismatchError):
		buf.reshape((4, 2))


def test_equality_and_hash() -> None:
	a = DenseBuffer([1, 2, 3, 4], (2, 2))
	b = DenseBuffer([1, 2, 3, 4], (2, 2))
	c = DenseBuffer([1, 2, 3, 4], (4,))
	assert a == b
	assert hash(a) == hash(b)
	assert a != c
	assert a != DenseBuffer([1, 2, 3, 5], (2, 2))


def test_signed_zeros_are_equal_and_hash_alike() -> None:
	pos = DenseBuffer([0.0, 1.0], (2,))
	neg = DenseBuffer([-0.0, 1.0], (2,))
	assert pos == neg
	assert hash(pos) == hash(neg)
	assert len({pos, neg}) == 1


def test_construct_from_generator() -> None:
	buf = DenseBuffer((float(i) for i in range(4)), (2, 2))
	assert buf.to_numpy().tolist() == [[0.0, 1.0], [2.0, 3.0]]
	with pytest.raises(ShapeMismatchError):
		DenseBuffer((float(i) for i in range(3)), (2, 2))
