import unittest

import numpy as np

from src.vlcore.domain._device import DataType, DeviceType
from src.vlcore.domain._tensor import ITensor
from src.vlcore.domain._tensor_shape import TensorShape
from src.vlcore.infrastructure.tensor._tensor import Tensor, are_compatible


class TestTensorConstruction(unittest.TestCase):
    def test_default_tensor_is_null_and_empty(self):
        t = Tensor()
        self.assertTrue(t.is_null())
        self.assertFalse(t)
        self.assertTrue(t.is_empty())
        self.assertEqual(t.memory_size, 0)
        self.assertIs(t.device_type, DeviceType.CPU)
        self.assertIs(t.data_type, DataType.FLOAT)

    def test_from_array_borrows_memory(self):
        arr = np.asfortranarray(np.arange(24, dtype=np.float64).reshape(2, 3, 4))
        t = Tensor.from_array(arr)
        self.assertTrue(t)
        self.assertEqual(t.dimensions, (2, 3, 4))
        self.assertIs(t.data_type, DataType.DOUBLE)
        self.assertIs(t.device_type, DeviceType.CPU)
        self.assertEqual(t.memory_size, arr.nbytes)

        view = t.as_array()
        np.testing.assert_array_equal(view, arr)
        view[1, 2, 3] = -1.0
        self.assertEqual(arr[1, 2, 3], -1.0)

    def test_from_array_rejects_c_ordered_matrix(self):
        with self.assertRaises(ValueError):
            Tensor.from_array(np.zeros((3, 4), dtype=np.float32))

    def test_from_array_rejects_strided_vector(self):
        # flattening a strided slice would copy, so writes would never reach it
        base = np.zeros(4, dtype=np.float64)
        with self.assertRaises(ValueError):
            Tensor.from_array(base[::2])
        np.testing.assert_array_equal(base, np.zeros(4))

    def test_from_array_accepts_contiguous_slice(self):
        base = np.zeros(6, dtype=np.float32)
        t = Tensor.from_array(base[2:5])
        t.as_array()[0] = 9.0
        self.assertEqual(base[2], 9.0)

    def test_from_array_rejects_unsupported_dtype(self):
        with self.assertRaises(TypeError):
            Tensor.from_array(np.zeros(3, dtype=np.int32))

    def test_from_array_rejects_non_arrays(self):
        with self.assertRaises(TypeError):
            Tensor.from_array([1.0, 2.0])

    def test_from_pointer_wraps_external_memory(self):
        arr = np.zeros((2, 2), dtype=np.float32, order="F")
        t = Tensor.from_pointer(arr.ctypes.data, (2, 2), DataType.FLOAT, DeviceType.CPU)
        self.assertEqual(t.memory_size, 16)
        t.as_array()[0, 1] = 3.0
        self.assertEqual(arr[0, 1], 3.0)

    def test_memory_too_small_raises(self):
        block = np.zeros(8, dtype=np.uint8)
        with self.assertRaises(ValueError):
            Tensor((2, 2), DataType.FLOAT, DeviceType.CPU, block)

    def test_satisfies_tensor_protocol(self):
        self.assertIsInstance(Tensor((1,)), ITensor)


class TestTensorViews(unittest.TestCase):
    def test_as_array_with_alternative_shape(self):
        arr = np.asfortranarray(np.arange(24, dtype=np.float32).reshape(2, 3, 2, 2))
        t = Tensor.from_array(arr)
        planes = t.as_array((2, 3, 4))
        np.testing.assert_array_equal(planes[:, :, 3], arr[:, :, 1, 1])

    def test_as_array_count_mismatch_raises(self):
        t = Tensor.from_array(np.zeros(6, dtype=np.float32))
        with self.assertRaises(ValueError):
            t.as_array((7,))

    def test_as_array_on_null_raises(self):
        with self.assertRaises(ValueError):
            Tensor((2,)).as_array()

    def test_get_shape_is_independent_copy(self):
        t = Tensor((3, 4))
        s = t.get_shape()
        self.assertIs(type(s), TensorShape)
        s.set_height(10)
        self.assertEqual(t.height, 3)

    def test_copy_shares_memory(self):
        t = Tensor.from_array(np.zeros(4, dtype=np.float32))
        c = t.copy()
        self.assertIsInstance(c, Tensor)
        self.assertIs(c.get_memory(), t.get_memory())
        self.assertIs(c.data_type, t.data_type)

    def test_set_memory(self):
        t = Tensor((2,), DataType.DOUBLE)
        t.set_memory(np.zeros(16, dtype=np.uint8))
        self.assertFalse(t.is_null())
        self.assertEqual(t.memory_size, 16)
        t.set_memory(None)
        self.assertTrue(t.is_null())


class TestAreCompatible(unittest.TestCase):
    def test_matching_device_and_type(self):
        a = Tensor.from_array(np.zeros(2, dtype=np.float32))
        b = Tensor.from_array(np.zeros(5, dtype=np.float32))
        self.assertTrue(are_compatible(a, b))

    def test_type_mismatch(self):
        a = Tensor.from_array(np.zeros(2, dtype=np.float32))
        b = Tensor.from_array(np.zeros(2, dtype=np.float64))
        self.assertFalse(are_compatible(a, b))

    def test_device_mismatch(self):
        a = Tensor.from_array(np.zeros(2, dtype=np.float32))
        b = Tensor((2,), DataType.FLOAT, DeviceType.GPU, np.zeros(8, dtype=np.uint8))
        self.assertFalse(are_compatible(a, b))

    def test_null_or_empty_is_compatible_with_anything(self):
        a = Tensor.from_array(np.zeros(2, dtype=np.float32))
        self.assertTrue(are_compatible(a, Tensor((2,), DataType.DOUBLE)))
        empty = Tensor.from_array(np.zeros((0,), dtype=np.float64))
        self.assertTrue(are_compatible(a, empty))


if __name__ == "__main__":
    unittest.main()
