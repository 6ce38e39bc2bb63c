import unittest

import numpy as np

from src.vlcore.domain._device import DataType, DeviceType, get_data_type_size_in_bytes
from src.vlcore.domain._pooling import PoolingMethod


class TestDeviceType(unittest.TestCase):
    def test_parse(self):
        self.assertIs(DeviceType.parse("cpu"), DeviceType.CPU)
        self.assertIs(DeviceType.parse("GPU"), DeviceType.GPU)
        self.assertIs(DeviceType.parse("cuda:1"), DeviceType.GPU)
        self.assertIs(DeviceType.parse(DeviceType.CPU), DeviceType.CPU)
        with self.assertRaises(ValueError):
            DeviceType.parse("tpu")

    def test_str(self):
        self.assertEqual(str(DeviceType.GPU), "gpu")


class TestDataType(unittest.TestCase):
    def test_sizes(self):
        self.assertEqual(get_data_type_size_in_bytes(DataType.CHAR), 1)
        self.assertEqual(get_data_type_size_in_bytes(DataType.FLOAT), 4)
        self.assertEqual(get_data_type_size_in_bytes(DataType.DOUBLE), 8)

    def test_size_matches_numpy_itemsize(self):
        for dt in DataType:
            self.assertEqual(dt.size_in_bytes, np.dtype(dt.dtype_name).itemsize)

    def test_from_numpy(self):
        self.assertIs(DataType.from_numpy(np.dtype(np.float32)), DataType.FLOAT)
        self.assertIs(DataType.from_numpy(np.float64), DataType.DOUBLE)
        self.assertIs(DataType.from_numpy("int8"), DataType.CHAR)
        with self.assertRaises(TypeError):
            DataType.from_numpy(np.dtype(np.int32))


class TestPoolingMethod(unittest.TestCase):
    def test_parse(self):
        self.assertIs(PoolingMethod.parse("max"), PoolingMethod.MAX)
        self.assertIs(PoolingMethod.parse("avg"), PoolingMethod.AVERAGE)
        self.assertIs(PoolingMethod.parse("Average"), PoolingMethod.AVERAGE)
        with self.assertRaises(ValueError):
            PoolingMethod.parse("min")


if __name__ == "__main__":
    unittest.main()
