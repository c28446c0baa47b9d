"""
Interpolation engine for rectilinear lookup tables.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from monet_lookup.constants import (
    APPROX_EQUAL_FACTOR,
    STATUS_EMPTY_AXIS,
    STATUS_INDEX_OUT_OF_BOUNDS,
    STATUS_OFFSET_OUT_OF_RANGE,
    STATUS_OK,
    STATUS_OUT_OF_DOMAIN,
)
from monet_lookup.errors import (
    DimensionMismatchError,
    IndexOutOfBoundsError,
    InternalConsistencyError,
    OutOfDomainError,
)
from monet_lookup.methods import _numba_kernels
from monet_lookup.utils import TableData

logger = logging.getLogger(__name__)


class InterpolationEngine:
    """Index encoding, bracket location and multilinear interpolation over a validated table.

    The engine never mutates its data, so one instance may be queried from
    several threads at once.
    """

    def __init__(self, data: TableData, approx_factor: float = APPROX_EQUAL_FACTOR):
        """Initialize the engine.

        Args:
            data: Validated axes and values
            approx_factor: Multiples of machine epsilon used to decide that a query
                value sits exactly on a breakpoint
        """
        self.data = data
        self.approx_factor = float(approx_factor)
        self.arena, self.offsets, self.sizes = data.axis_arena()
        self.values = np.ascontiguousarray(data.values, dtype=np.float64)

    @property
    def ndim(self) -> int:
        return self.data.ndim

    @property
    def corner_count(self) -> int:
        """Number of grid corners fetched per interpolated point (``2**ndim``)."""
        return 1 << self.ndim

    @property
    def blend_count(self) -> int:
        """Number of pairwise linear interpolations per point (``2**ndim - 1``)."""
        return self.corner_count - 1

    def _check_length(self, inputs: Sequence, what: str) -> None:
        if len(inputs) != self.ndim:
            msg = f"Expected {self.ndim} {what}, one per dimension, got {len(inputs)}."
            raise DimensionMismatchError(msg, expected=self.ndim, received=len(inputs))

    def _check_dimension(self, dimension: int) -> None:
        if not 0 <= dimension < self.ndim:
            msg = f"Invalid dimension {dimension} for a {self.ndim}-dimensional table."
            raise IndexOutOfBoundsError(msg, dimension=dimension)

    def _raise_for_status(self, status: int, dimension: int, value: float | None = None, detail: int = -1) -> None:
        """Translate a kernel status code into the matching exception."""
        if status == STATUS_OK:
            return
        if status == STATUS_OUT_OF_DOMAIN:
            axis = self.data.axes[dimension]
            lower, upper = float(axis[0]), float(axis[-1])
            msg = f"Value {value} for dimension {dimension} is outside of the table bounds [{lower}, {upper}]."
            raise OutOfDomainError(msg, dimension, value, lower, upper)
        if status == STATUS_INDEX_OUT_OF_BOUNDS:
            msg = f"Index for dimension {dimension} is out of bounds (size {self.sizes[dimension]})."
            raise IndexOutOfBoundsError(msg, dimension=dimension)
        if status == STATUS_OFFSET_OUT_OF_RANGE:
            msg = f"Calculated offset {detail} exceeds the {self.values.shape[0]} stored values."
            raise InternalConsistencyError(msg)
        if status == STATUS_EMPTY_AXIS:
            msg = f"Axis {dimension} is empty."
            raise InternalConsistencyError(msg)
        msg = f"Unknown kernel status: {status}"
        raise InternalConsistencyError(msg)

    @staticmethod
    def _as_indices(indices) -> np.ndarray:
        """Coerce indices to int64, rejecting fractional and non-finite values."""
        arr = np.asarray(indices)
        if arr.dtype.kind in "iub":
            return arr.astype(np.int64)
        as_float = arr.astype(np.float64)
        # Whole numbers that fit in int64 only
        bad = ~np.isfinite(as_float) | (as_float != np.floor(as_float)) | (np.abs(as_float) >= 2.0**63)
        if bad.any():
            position = np.unravel_index(int(np.argmax(bad)), bad.shape)
            dimension = int(position[-1]) if position else None
            msg = f"Index {as_float[position]} is not a valid integer index."
            raise IndexOutOfBoundsError(msg, dimension=dimension)
        return as_float.astype(np.int64)

    def encode_index(self, indices: Sequence[int]) -> int:
        """Flat offset of a multi-index into the value array (axis 0 varies fastest)."""
        self._check_length(indices, "indices")
        multi_index = self._as_indices(indices)
        status, result = _numba_kernels.encode_index(multi_index, self.sizes, self.values.shape[0])
        if status == STATUS_INDEX_OUT_OF_BOUNDS:
            msg = (
                f"Index {indices[result]} for dimension {result} is out of bounds "
                f"(size {self.sizes[result]})."
            )
            raise IndexOutOfBoundsError(msg, dimension=int(result), index=int(indices[result]))
        self._raise_for_status(status, -1, detail=int(result))
        return int(result)

    def value_at(self, indices: Sequence[int]) -> float:
        return float(self.values[self.encode_index(indices)])

    def approx_position(self, dimension: int, value: float) -> float:
        """Fractional index of ``value`` along one axis, e.g. 1.25 between breakpoints 1 and 2."""
        self._check_dimension(dimension)
        status, position = _numba_kernels.approx_position(
            self.arena, self.offsets[dimension], self.sizes[dimension], float(value), self.approx_factor
        )
        self._raise_for_status(status, dimension, value)
        return float(position)

    def locate(self, dimension: int, value: float) -> tuple[int, float]:
        """Bracket of ``value`` along one axis.

        Returns:
            (low_index, fraction) with ``fraction`` in [0, 1). On the last breakpoint
            of a multi-breakpoint axis the result is ``(size - 2, 1.0)``.
        """
        self._check_dimension(dimension)
        status, low, fraction = _numba_kernels.position_info(
            self.arena, self.offsets[dimension], self.sizes[dimension], float(value), self.approx_factor
        )
        self._raise_for_status(status, dimension, value)
        return int(low), float(fraction)

    def interpolate(self, point: Sequence[float]) -> float:
        """Multilinear interpolation at ``point``.

        Out-of-domain components fail immediately; extrapolation is never performed.
        """
        self._check_length(point, "values")
        query = np.asarray(point, dtype=np.float64)
        status, dimension, result = _numba_kernels.interpolate_point(
            self.arena, self.offsets, self.sizes, self.values, query, self.approx_factor
        )
        self._raise_for_status(status, dimension, point[dimension] if dimension >= 0 else None)
        return float(result)

    def interpolate_many(self, points: np.ndarray) -> np.ndarray:
        """Interpolate an array of points (n_points, ndim).

        Raises on the first failing point; no partially filled result is returned.
        """
        points = np.asarray(points, dtype=np.float64)
        if points.size == 0:
            return np.empty(0, dtype=np.float64)
        points = np.ascontiguousarray(np.atleast_2d(points))
        if points.ndim != 2 or points.shape[1] != self.ndim:
            msg = f"Expected points of shape (n, {self.ndim}), got {points.shape}."
            raise DimensionMismatchError(msg, expected=self.ndim, received=points.shape[-1])
        logger.debug("Interpolating %d points in %d dimensions", points.shape[0], self.ndim)
        result, status, dimension = _numba_kernels.interpolate_points(
            self.arena, self.offsets, self.sizes, self.values, points, self.approx_factor
        )
        failed = np.flatnonzero(status != STATUS_OK)
        if failed.size:
            i = failed[0]
            d = int(dimension[i])
            self._raise_for_status(int(status[i]), d, float(points[i, d]) if d >= 0 else None)
        return result

    def lookup_many(self, indices: np.ndarray) -> np.ndarray:
        """Stored values for an array of multi-indices (n_points, ndim)."""
        indices = self._as_indices(indices)
        if indices.size == 0:
            return np.empty(0, dtype=np.float64)
        indices = np.ascontiguousarray(np.atleast_2d(indices))
        if indices.ndim != 2 or indices.shape[1] != self.ndim:
            msg = f"Expected indices of shape (n, {self.ndim}), got {indices.shape}."
            raise DimensionMismatchError(msg, expected=self.ndim, received=indices.shape[-1])
        result, status, detail = _numba_kernels.lookup_indices(self.sizes, self.values, indices)
        failed = np.flatnonzero(status != STATUS_OK)
        if failed.size:
            i = failed[0]
            if status[i] == STATUS_INDEX_OUT_OF_BOUNDS:
                d = int(detail[i])
                msg = f"Index {indices[i, d]} for dimension {d} is out of bounds (size {self.sizes[d]})."
                raise IndexOutOfBoundsError(msg, dimension=d, index=int(indices[i, d]))
            self._raise_for_status(int(status[i]), -1, detail=int(detail[i]))
        return result
