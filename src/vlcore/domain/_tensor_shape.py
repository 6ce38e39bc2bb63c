"""
Tensor shape value type.

`TensorShape` is an ordered sequence of at most eight non-negative extents.
The first four dimensions carry conventional names:

- 0: height
- 1: width
- 2: number of channels (depth)
- 3: cardinality (batch size)

Dimensions past the populated ones read as 1, which lets a 2D shape be used
wherever a 4D shape is expected without reshaping first.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Union

from typing_extensions import Self

ShapeLike = Union["TensorShape", Sequence[int]]


class TensorShape:
    """
    Ordered sequence of up to `MAX_NUM_DIMENSIONS` dimension extents.

    Parameters
    ----------
    *dimensions : int or Sequence[int] or TensorShape
        Either nothing (empty shape), a single sequence / `TensorShape` to
        copy, or the extents as separate integers, e.g.
        ``TensorShape(height, width, depth, size)``.

    Raises
    ------
    ValueError
        If more than `MAX_NUM_DIMENSIONS` extents are given or an extent is
        negative.

    Notes
    -----
    Shapes are mutable value objects: mutators change the shape in place and
    copies are independent. They are therefore unhashable.
    """

    MAX_NUM_DIMENSIONS = 8

    __slots__ = ("_dimensions", "_num_dimensions")

    def __init__(self, *dimensions: Union[int, ShapeLike]) -> None:
        self._dimensions = [1] * self.MAX_NUM_DIMENSIONS
        self._num_dimensions = 0
        if len(dimensions) == 1 and _is_shape_like(dimensions[0]):
            source = dimensions[0]
            if isinstance(source, TensorShape):
                source = source.dimensions
            self.set_dimensions(source)
        else:
            self.set_dimensions(dimensions)

    # ---------------------------------------------------------------------
    # Mutators
    # ---------------------------------------------------------------------
    def clear(self) -> None:
        """Reset to the empty shape (zero dimensions)."""
        self._dimensions = [1] * self.MAX_NUM_DIMENSIONS
        self._num_dimensions = 0

    def set_dimension(self, num: int, dimension: int) -> None:
        """
        Set the extent of dimension `num`, growing the shape if needed.

        Dimensions between the previous last one and `num` are set to 1.

        Raises
        ------
        ValueError
            If `num` is outside ``[0, MAX_NUM_DIMENSIONS)`` or `dimension`
            is negative.
        """
        num = int(num)
        dimension = int(dimension)
        if num < 0 or num >= self.MAX_NUM_DIMENSIONS:
            raise ValueError(
                f"dimension index {num} out of range [0, {self.MAX_NUM_DIMENSIONS})"
            )
        if dimension < 0:
            raise ValueError(f"dimension extent must be non-negative, got {dimension}")
        if num + 1 > self._num_dimensions:
            for k in range(self._num_dimensions, num):
                self._dimensions[k] = 1
            self._num_dimensions = num + 1
        self._dimensions[num] = dimension

    def set_dimensions(self, dimensions: Iterable[int]) -> None:
        """
        Replace all dimensions.

        Raises
        ------
        ValueError
            If more than `MAX_NUM_DIMENSIONS` extents are given or any extent
            is negative.
        """
        dims = [int(d) for d in dimensions]
        if len(dims) > self.MAX_NUM_DIMENSIONS:
            raise ValueError(
                f"at most {self.MAX_NUM_DIMENSIONS} dimensions are supported, got {len(dims)}"
            )
        if any(d < 0 for d in dims):
            raise ValueError(f"dimension extents must be non-negative, got {dims}")
        self.clear()
        self._dimensions[: len(dims)] = dims
        self._num_dimensions = len(dims)

    def set_height(self, x: int) -> None:
        self.set_dimension(0, x)

    def set_width(self, x: int) -> None:
        self.set_dimension(1, x)

    def set_depth(self, x: int) -> None:
        self.set_dimension(2, x)

    def set_size(self, x: int) -> None:
        self.set_dimension(3, x)

    def reshape(self, target: Union[int, ShapeLike]) -> None:
        """
        Squash or stretch the shape to exactly `target` dimensions.

        Parameters
        ----------
        target : int or TensorShape or Sequence[int]
            Either the new number of dimensions or a whole shape to copy.

        Notes
        -----
        With an integer, the element count is preserved: stretching appends
        extents of 1, squashing folds the trailing dimensions into the new
        last one. Reshaping to 0 dimensions yields the empty shape.

        Raises
        ------
        ValueError
            If `target` is outside ``[0, MAX_NUM_DIMENSIONS]``.
        """
        if _is_shape_like(target):
            source = target.dimensions if isinstance(target, TensorShape) else target
            self.set_dimensions(source)
            return

        n = int(target)
        if n < 0 or n > self.MAX_NUM_DIMENSIONS:
            raise ValueError(
                f"cannot reshape to {n} dimensions (max {self.MAX_NUM_DIMENSIONS})"
            )
        if n == 0:
            self.clear()
            return
        if n >= self._num_dimensions:
            for k in range(self._num_dimensions, n):
                self._dimensions[k] = 1
            self._num_dimensions = n
            return

        last = 1
        for k in range(n - 1, self._num_dimensions):
            last *= self._dimensions[k]
        for k in range(n, self.MAX_NUM_DIMENSIONS):
            self._dimensions[k] = 1
        self._dimensions[n - 1] = last
        self._num_dimensions = n

    # ---------------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------------
    def get_dimension(self, num: int) -> int:
        """
        Return the extent of dimension `num` (1 past the populated ones).

        Raises
        ------
        ValueError
            If `num` is negative.
        """
        num = int(num)
        if num < 0:
            raise ValueError(f"dimension index must be non-negative, got {num}")
        if num < self._num_dimensions:
            return self._dimensions[num]
        return 1

    @property
    def dimensions(self) -> tuple[int, ...]:
        """The populated extents."""
        return tuple(self._dimensions[: self._num_dimensions])

    @property
    def num_dimensions(self) -> int:
        return self._num_dimensions

    @property
    def height(self) -> int:
        return self.get_dimension(0)

    @property
    def width(self) -> int:
        return self.get_dimension(1)

    @property
    def num_channels(self) -> int:
        return self.get_dimension(2)

    @property
    def cardinality(self) -> int:
        return self.get_dimension(3)

    @property
    def num_elements(self) -> int:
        """
        Product of all populated extents.

        The empty shape (zero dimensions) has zero elements.
        """
        if self._num_dimensions == 0:
            return 0
        n = 1
        for d in self._dimensions[: self._num_dimensions]:
            n *= d
        return n

    def is_empty(self) -> bool:
        """True if the shape has no elements."""
        return self.num_elements == 0

    def get_shape(self) -> "TensorShape":
        """Return an independent `TensorShape` copy of these dimensions."""
        return TensorShape(self.dimensions)

    def copy(self) -> Self:
        """Return an independent copy of this object."""
        other = object.__new__(type(self))
        self._copy_into(other)
        return other

    def _copy_into(self, other: "TensorShape") -> None:
        other._dimensions = list(self._dimensions)
        other._num_dimensions = self._num_dimensions

    # ---------------------------------------------------------------------
    # Comparison / display
    # ---------------------------------------------------------------------
    def __eq__(self, other: object) -> bool:
        """
        Compare shapes dimension by dimension.

        Trailing implicit extents of 1 are reconciled, so ``(3, 4)`` equals
        ``(3, 4, 1, 1)`` but not ``(3, 4, 2)``.
        """
        if not isinstance(other, TensorShape):
            return NotImplemented
        n = max(self._num_dimensions, other._num_dimensions)
        if n == 0:
            return True
        if self._num_dimensions == 0 or other._num_dimensions == 0:
            return False
        return all(self.get_dimension(k) == other.get_dimension(k) for k in range(n))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TensorShape({list(self.dimensions)})"

    def __str__(self) -> str:
        return "[" + "x".join(str(d) for d in self.dimensions) + "]"


def _is_shape_like(value: object) -> bool:
    return isinstance(value, TensorShape) or hasattr(value, "__iter__")
