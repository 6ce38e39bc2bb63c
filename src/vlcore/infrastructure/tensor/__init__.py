from ._tensor import Tensor, are_compatible

__all__ = [
    Tensor.__name__,
    are_compatible.__name__,
]
