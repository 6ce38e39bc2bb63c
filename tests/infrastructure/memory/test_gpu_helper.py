import unittest
import warnings
from unittest import mock

from src.vlcore.infrastructure._config import RuntimeConfig
from src.vlcore.infrastructure.backends._gpu import GpuBackend
from src.vlcore.infrastructure.memory import _gpu_helper
from src.vlcore.infrastructure.memory._gpu_helper import CudnnBindings, GpuHelper


class _FakeGpuBackend(GpuBackend):
    def __init__(self, count):
        super().__init__(device_index=0)
        self.count = count
        self.queries = 0

    def device_count(self):
        self.queries += 1
        return self.count


def _fake_bindings():
    return CudnnBindings(ops=object(), lib=object(), error_type=RuntimeError)


class TestGpuHelperDevices(unittest.TestCase):
    def test_device_count_is_cached_until_invalidated(self):
        backend = _FakeGpuBackend(2)
        helper = GpuHelper(RuntimeConfig(), backend)
        self.assertTrue(helper.needs_initialization)
        self.assertEqual(helper.get_device_count(), 2)
        self.assertEqual(helper.get_device_count(), 2)
        self.assertEqual(backend.queries, 1)
        self.assertTrue(helper.is_gpu_available())
        self.assertEqual(helper.get_device_index(), 0)

        helper.invalidate()
        self.assertTrue(helper.needs_initialization)
        helper.get_device_count()
        self.assertEqual(backend.queries, 2)

    def test_no_devices(self):
        helper = GpuHelper(RuntimeConfig(), _FakeGpuBackend(0))
        self.assertFalse(helper.is_gpu_available())


class TestGpuHelperCudnn(unittest.TestCase):
    def test_toggle_defaults_to_config(self):
        helper = GpuHelper(RuntimeConfig(cudnn_enabled=False), _FakeGpuBackend(1))
        self.assertFalse(helper.get_cudnn_enabled())
        helper.set_cudnn_enabled(True)
        self.assertTrue(helper.get_cudnn_enabled())
        helper.clear()
        self.assertFalse(helper.get_cudnn_enabled())

    def test_active_when_enabled_available_and_gpu_present(self):
        helper = GpuHelper(RuntimeConfig(cudnn_enabled=True), _FakeGpuBackend(1))
        with mock.patch.object(_gpu_helper, "load_cudnn_bindings", side_effect=_fake_bindings):
            self.assertTrue(helper.is_cudnn_available())
            self.assertTrue(helper.is_cudnn_active())
            helper.set_cudnn_enabled(False)
            self.assertFalse(helper.is_cudnn_active())

    def test_missing_bindings_warn_once_and_deactivate(self):
        helper = GpuHelper(RuntimeConfig(cudnn_enabled=True), _FakeGpuBackend(1))
        with mock.patch.object(
            _gpu_helper, "load_cudnn_bindings", side_effect=ImportError("no cudnn")
        ) as loader:
            with warnings.catch_warnings(record=True) as caught:
                warnings.simplefilter("always")
                self.assertFalse(helper.is_cudnn_active())
                self.assertFalse(helper.is_cudnn_available())
            self.assertEqual(loader.call_count, 1)
        runtime = [w for w in caught if issubclass(w.category, RuntimeWarning)]
        self.assertEqual(len(runtime), 1)
        self.assertIn("falling back", str(runtime[0].message))

    def test_invalidate_reloads_bindings(self):
        helper = GpuHelper(RuntimeConfig(cudnn_enabled=True), _FakeGpuBackend(1))
        with mock.patch.object(
            _gpu_helper, "load_cudnn_bindings", side_effect=_fake_bindings
        ) as loader:
            helper.get_cudnn()
            helper.get_cudnn()
            helper.invalidate()
            helper.get_cudnn()
        self.assertEqual(loader.call_count, 2)


class TestRuntimeConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = RuntimeConfig.from_env({})
        self.assertTrue(cfg.cudnn_enabled)
        self.assertEqual(cfg.gpu_device, 0)

    def test_env_values(self):
        cfg = RuntimeConfig.from_env({"VLCORE_CUDNN": "off", "VLCORE_GPU_DEVICE": "2"})
        self.assertFalse(cfg.cudnn_enabled)
        self.assertEqual(cfg.gpu_device, 2)
        self.assertTrue(RuntimeConfig.from_env({"VLCORE_CUDNN": "1"}).cudnn_enabled)

    def test_invalid_device(self):
        with self.assertRaises(ValueError):
            RuntimeConfig.from_env({"VLCORE_GPU_DEVICE": "first"})
        with self.assertRaises(ValueError):
            RuntimeConfig.from_env({"VLCORE_GPU_DEVICE": "-1"})


if __name__ == "__main__":
    unittest.main()
