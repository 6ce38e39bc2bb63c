from ._pool2d_mixin import PoolingConfigMixin

__all__ = [PoolingConfigMixin.__name__]
