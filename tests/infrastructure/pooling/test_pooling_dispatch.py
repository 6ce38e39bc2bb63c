import unittest
from unittest import mock

import numpy as np

from src.vlcore.domain._device import DeviceType
from src.vlcore.domain._errors import ErrorCode
from src.vlcore.domain._pooling import PoolingImplementation
from src.vlcore.infrastructure._config import RuntimeConfig
from src.vlcore.infrastructure.memory._context import Context
from src.vlcore.infrastructure.pooling import _pooling
from src.vlcore.infrastructure.pooling._pooling import Pooling

from ._pool_reference import ref_forward, to_tensor


class _FakeAccelerated(PoolingImplementation):
    name = "fake"

    def __init__(self, enabled=True, result=ErrorCode.SUCCESS, raises=None):
        self.enabled = enabled
        self.result = result
        self.raises = raises
        self.calls = []

    def is_enabled(self, op, tensor):
        return self.enabled

    def _call(self, direction, op):
        self.calls.append(direction)
        if self.raises is not None:
            raise self.raises
        if self.result.failed and self.result is not ErrorCode.UNSUPPORTED:
            return op.context.set_error(self.result, "fake kernel")
        return self.result

    def forward(self, op, output, input):
        return self._call("forward", op)

    def backward(self, op, der_input, input, der_output):
        return self._call("backward", op)


class TestAcceleratedDispatch(unittest.TestCase):
    def setUp(self):
        self.ctx = Context(RuntimeConfig(cudnn_enabled=False))
        self.op = Pooling(self.ctx, 2, 2, 2, 2, method="max")
        self.x = np.asfortranarray(np.random.default_rng(0).standard_normal((4, 4, 1)))
        self.y = np.full((2, 2, 1), 123.0, order="F")

    def _forward(self, fake):
        with mock.patch.dict(_pooling._ACCELERATED, {DeviceType.CPU: (fake,)}):
            return self.op.forward(to_tensor(self.y), to_tensor(self.x))

    def test_accelerated_result_is_used(self):
        fake = _FakeAccelerated(result=ErrorCode.SUCCESS)
        self.assertIs(self._forward(fake), ErrorCode.SUCCESS)
        self.assertEqual(fake.calls, ["forward"])
        # the fake did not write, so native must not have run either
        self.assertTrue(np.all(self.y == 123.0))

    def test_unsupported_falls_back_to_native(self):
        fake = _FakeAccelerated(result=ErrorCode.UNSUPPORTED)
        self.assertIs(self._forward(fake), ErrorCode.SUCCESS)
        self.assertEqual(fake.calls, ["forward"])
        np.testing.assert_allclose(self.y, ref_forward(self.x, (2, 2), (2, 2), (0, 0, 0, 0), "max"))
        self.assertIs(self.ctx.get_last_error(), ErrorCode.SUCCESS)

    def test_disabled_implementation_is_skipped(self):
        fake = _FakeAccelerated(enabled=False)
        self.assertIs(self._forward(fake), ErrorCode.SUCCESS)
        self.assertEqual(fake.calls, [])
        self.assertFalse(np.any(self.y == 123.0))

    def test_failure_is_returned_and_annotated(self):
        fake = _FakeAccelerated(result=ErrorCode.CUDNN)
        self.assertIs(self._forward(fake), ErrorCode.CUDNN)
        self.assertIs(self.ctx.get_last_error(), ErrorCode.CUDNN)
        self.assertEqual(
            self.ctx.get_last_error_message(), "Pooling forward (fake): fake kernel [cuDNN error]"
        )

    def test_memory_error_becomes_out_of_memory(self):
        fake = _FakeAccelerated(raises=MemoryError("boom"))
        self.assertIs(self._forward(fake), ErrorCode.OUT_OF_MEMORY)
        self.assertIs(self.ctx.get_last_error(), ErrorCode.OUT_OF_MEMORY)

    def test_unclassified_exception_propagates(self):
        fake = _FakeAccelerated(raises=KeyError("bug"))
        with self.assertRaises(KeyError):
            self._forward(fake)

    def test_backward_dispatch(self):
        fake = _FakeAccelerated(result=ErrorCode.UNSUPPORTED)
        dx = np.zeros((4, 4, 1), order="F")
        dy = np.ones((2, 2, 1), order="F")
        with mock.patch.dict(_pooling._ACCELERATED, {DeviceType.CPU: (fake,)}):
            error = self.op.backward(to_tensor(dx), to_tensor(self.x), to_tensor(dy))
        self.assertIs(error, ErrorCode.SUCCESS)
        self.assertEqual(fake.calls, ["backward"])
        self.assertAlmostEqual(float(dx.sum()), 4.0)


class TestNativeWorkspaceFailure(unittest.TestCase):
    def test_workspace_failure_is_reported(self):
        ctx = Context(RuntimeConfig(cudnn_enabled=False))
        op = Pooling(ctx, 2, 2, 2, 2)
        x = np.zeros((4, 4, 1), order="F")
        y = np.full((2, 2, 1), 1.0, order="F")
        with mock.patch.object(ctx, "get_workspace", return_value=None) as get_workspace:
            ctx.set_error(ErrorCode.OUT_OF_MEMORY, "get_workspace")
            error = op.forward(to_tensor(y), to_tensor(x))
        self.assertTrue(get_workspace.called)
        self.assertIs(error, ErrorCode.OUT_OF_MEMORY)
        self.assertTrue(ctx.get_last_error_message().startswith("Pooling forward: get_workspace"))
        self.assertTrue(np.all(y == 1.0))


if __name__ == "__main__":
    unittest.main()
