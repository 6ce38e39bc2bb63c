import unittest

import numpy as np

from src.vlcore.domain._device import DeviceType
from src.vlcore.domain._errors import ErrorCode
from src.vlcore.infrastructure.backends._base import as_block, typed_view
from src.vlcore.infrastructure.backends._cpu import CpuBackend
from src.vlcore.infrastructure.backends._gpu import GpuBackend


class TestTypedView(unittest.TestCase):
    def test_view_is_column_major_and_shares_memory(self):
        block = np.zeros(6 * 4, dtype=np.uint8)
        v = typed_view(block, (2, 3), "float32")
        self.assertEqual(v.shape, (2, 3))
        self.assertTrue(v.flags.f_contiguous)

        v[1, 0] = 5.0
        flat = block.view(np.float32)
        # element (1, 0) is the second element in column-major order
        self.assertEqual(flat[1], 5.0)

    def test_offset(self):
        block = np.zeros(32, dtype=np.uint8)
        a = typed_view(block, (2,), "float64", offset=0)
        b = typed_view(block, (2,), "float64", offset=16)
        b[:] = 3.0
        np.testing.assert_array_equal(a, [0.0, 0.0])
        np.testing.assert_array_equal(block.view(np.float64), [0.0, 0.0, 3.0, 3.0])

    def test_view_larger_than_block_raises(self):
        block = np.zeros(8, dtype=np.uint8)
        with self.assertRaises(ValueError):
            typed_view(block, (3,), "float32")
        with self.assertRaises(ValueError):
            typed_view(block, (2,), "float32", offset=4)


class TestAsBlock(unittest.TestCase):
    def test_fortran_array_round_trips_through_block(self):
        arr = np.asfortranarray(np.arange(12, dtype=np.float32).reshape(3, 4))
        block = as_block(arr)
        self.assertEqual(block.dtype, np.uint8)
        self.assertEqual(block.size, arr.nbytes)
        np.testing.assert_array_equal(typed_view(block, (3, 4), "float32"), arr)

        block[:4] = np.frombuffer(np.float32(42.0).tobytes(), dtype=np.uint8)
        self.assertEqual(arr[0, 0], 42.0)

    def test_c_ordered_matrix_rejected(self):
        arr = np.zeros((3, 4), dtype=np.float32)
        with self.assertRaises(ValueError):
            as_block(arr)

    def test_strided_vector_rejected(self):
        with self.assertRaises(ValueError):
            as_block(np.arange(8, dtype=np.float64)[::2])

    def test_one_dimensional_array_accepted(self):
        arr = np.arange(5, dtype=np.float64)
        self.assertEqual(as_block(arr).size, 40)


class TestCpuBackend(unittest.TestCase):
    def test_allocate(self):
        backend = CpuBackend()
        block = backend.allocate(17)
        self.assertEqual(block.dtype, np.uint8)
        self.assertEqual(block.size, 17)
        self.assertIs(backend.xp, np)
        self.assertTrue(backend.is_available())
        self.assertIs(backend.device_type, DeviceType.CPU)

    def test_wrap_pointer_aliases_memory(self):
        arr = np.zeros(4, dtype=np.float32)
        block = CpuBackend().wrap_pointer(arr.ctypes.data, arr.nbytes)
        typed_view(block, (4,), "float32")[2] = 7.0
        self.assertEqual(arr[2], 7.0)

    def test_memory_error_translation(self):
        backend = CpuBackend()
        self.assertIs(backend.translate_error(MemoryError()), ErrorCode.OUT_OF_MEMORY)
        self.assertIsNone(backend.translate_error(KeyError("x")))


class TestGpuBackendWithoutDevice(unittest.TestCase):
    def test_owns_is_false_for_numpy(self):
        self.assertFalse(GpuBackend.owns(np.zeros(2)))
        self.assertTrue(CpuBackend.owns(np.zeros(2)))

    def test_memory_error_maps_to_gpu_code(self):
        self.assertIs(
            GpuBackend().translate_error(MemoryError()), ErrorCode.OUT_OF_GPU_MEMORY
        )

    def test_device_index(self):
        self.assertEqual(GpuBackend(device_index=3).device_index, 3)
        self.assertFalse(GpuBackend(device_index=10_000).is_available())


if __name__ == "__main__":
    unittest.main()
