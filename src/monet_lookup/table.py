"""
N-dimensional lookup table.

This file is part of monet-lookup.

Copyright (c) 2025 monet-lookup Developers.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable, Hashable, Sequence
from typing import Any, TypeVar

import numpy as np
import xarray as xr

from monet_lookup.constants import APPROX_EQUAL_FACTOR
from monet_lookup.errors import (
    IndexOutOfBoundsError,
    InvalidTableError,
    LookupResult,
    LookupTableError,
    MalformedSourceDataError,
)
from monet_lookup.interpolation import InterpolationEngine
from monet_lookup.utils import (
    TableData,
    check_monotonically_increasing,
    is_valid_source_data,
    validate_source_data,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LookupTable:
    """Lookup table over a rectilinear grid of two or more independent axes.

    Values are found either exactly, by grid indices, or by multilinear
    interpolation between the breakpoints surrounding a query point. Querying
    outside of the grid is an error; nothing is extrapolated.

    A table is built from either the combined form, ``[axis_0, ..., axis_n-1, values]``,
    or the split form, ``(axes, values)``. ``values`` is flat with axis 0 varying
    fastest, so for axes of lengths ``(2, 3)`` the value at indices ``(i, j)`` is
    ``values[i + 2 * j]``.

    Construction never raises on bad data: the table is left invalid instead, and
    :attr:`valid` must be checked before querying.

    Example:
        >>> table = LookupTable([[1, 2], [10, 20, 30]], [1, 2, 3, 4, 5, 6])
        >>> table.lookup_by_indices((1, 2))
        6.0
        >>> table.lookup_by_values((1.5, 15))
        2.5
    """

    def __init__(
        self,
        data_set: Sequence[Any] | None = None,
        values: Sequence[float] | None = None,
        *,
        approx_factor: float = APPROX_EQUAL_FACTOR,
    ):
        """Initialize the table.

        Args:
            data_set: Axes followed by values (combined form), or only the axes when
                ``values`` is given. ``None`` creates an empty, invalid table.
            values: Flat dependent values for the split form.
            approx_factor: Multiples of machine epsilon, scaled by magnitude, within
                which a query value is treated as landing on a breakpoint.
        """
        self.approx_factor = float(approx_factor)
        self.last_error: MalformedSourceDataError | None = None
        self._data: TableData | None = None
        self._engine: InterpolationEngine | None = None
        if data_set is not None:
            self.populate(data_set, values)

    @classmethod
    def from_table_data(cls, data: TableData, approx_factor: float = APPROX_EQUAL_FACTOR) -> LookupTable:
        """Create a table from an already validated data set."""
        table = cls(approx_factor=approx_factor)
        table._adopt(data)
        return table

    @classmethod
    def from_dataarray(cls, da: xr.DataArray, approx_factor: float = APPROX_EQUAL_FACTOR) -> LookupTable:
        """Create a table from an N-dimensional DataArray.

        Each dimension becomes an axis, in ``da.dims`` order, using its 1-D
        coordinate (or ``0..n-1`` where it has none). Descending coordinates are
        sorted first.

        Coordinates or values that cannot be read as floats (labels, datetimes)
        leave the returned table invalid with the reason in :attr:`last_error`,
        the same as :meth:`populate`.
        """
        arrays = [(f"coordinate '{dim}'", da[dim].values) for dim in da.dims]
        arrays.append(("values", da.values))
        non_numeric = [label for label, arr in arrays if arr.dtype.kind not in "biuf"]
        if non_numeric:
            error = MalformedSourceDataError(f"non-numeric data in {', '.join(non_numeric)}")
            logger.warning("Rejected lookup table source data: %s", error.reason)
            table = cls(approx_factor=approx_factor)
            table.last_error = error
            return table

        axes = [np.asarray(da[dim].values, dtype=np.float64) for dim in da.dims]
        values = np.asarray(da.values, dtype=np.float64)

        for i, dim in enumerate(da.dims):
            if axes[i].size > 1 and np.all(np.diff(axes[i]) < 0):
                warnings.warn(f"Coordinate '{dim}' is descending; sorting it before building the table.", stacklevel=2)
                order = np.argsort(axes[i])
                axes[i] = axes[i][order]
                values = np.take(values, order, axis=i)

        # xarray stores the last dimension fastest; tables store the first fastest
        return cls(axes, values.ravel(order="F"), approx_factor=approx_factor)

    # ==== Data population ==== #

    def is_valid_source_data(self, data_set: Sequence[Any], values: Sequence[float] | None = None) -> bool:
        """Check whether a data set could populate this table. Never mutates the table."""
        return is_valid_source_data(data_set, values)

    def populate(self, data_set: Sequence[Any], values: Sequence[float] | None = None) -> bool:
        """Replace the table's data with a new data set.

        Returns:
            True if the data set was adopted. On failure the table is reset, the
            reason is logged and kept in :attr:`last_error`, and False is returned.
        """
        try:
            data = validate_source_data(data_set, values)
        except MalformedSourceDataError as e:
            logger.warning("Rejected lookup table source data: %s", e.reason)
            self.reset()
            self.last_error = e
            return False
        self._adopt(data)
        return True

    def reset(self) -> None:
        """Discard all data; the table becomes invalid."""
        self._data = None
        self._engine = None
        self.last_error = None

    def _adopt(self, data: TableData) -> None:
        self._data = data
        self._engine = InterpolationEngine(data, approx_factor=self.approx_factor)
        self.last_error = None
        logger.debug("Populated lookup table with shape %s", data.shape)

    def _require_engine(self) -> InterpolationEngine:
        if self._engine is None:
            msg = "Unable to operate on an invalid lookup table."
            raise InvalidTableError(msg)
        return self._engine

    # ==== Metadata ==== #

    @property
    def valid(self) -> bool:
        return self._engine is not None

    @property
    def dimensions(self) -> int:
        return 0 if self._data is None else self._data.ndim

    @property
    def dep_data_size(self) -> int:
        return 0 if self._data is None else self._data.size

    @property
    def shape(self) -> tuple[int, ...]:
        return () if self._data is None else self._data.shape

    @property
    def axes(self) -> list[np.ndarray]:
        """Copies of the independent axes."""
        return [] if self._data is None else [axis.copy() for axis in self._data.axes]

    @property
    def values(self) -> np.ndarray:
        """Copy of the flat dependent values."""
        return np.empty(0) if self._data is None else self._data.values.copy()

    @property
    def table_data(self) -> TableData | None:
        return self._data

    @property
    def blend_count(self) -> int:
        """Pairwise linear interpolations needed per value lookup (``2**N - 1``)."""
        return self._require_engine().blend_count

    def indep_data_size(self, dimension: int) -> int:
        """Number of breakpoints on one axis.

        Raises:
            IndexOutOfBoundsError: If the table has no such axis.
        """
        if not 0 <= dimension < self.dimensions:
            msg = f"Invalid dimension {dimension} for a table with {self.dimensions} dimensions."
            raise IndexOutOfBoundsError(msg, dimension=dimension)
        return self.shape[dimension]

    # ==== Lookups ==== #

    def index_at(self, indices: Sequence[int]) -> int:
        """Flat position in the value array of the given per-axis indices."""
        return self._require_engine().encode_index(indices)

    def lookup_by_indices(self, indices: Sequence[int]) -> float:
        """Exact stored value at the given per-axis indices."""
        return self._require_engine().value_at(indices)

    def lookup_by_values(self, values: Sequence[float]) -> float:
        """Value at an arbitrary point, interpolated between the surrounding breakpoints."""
        return self._require_engine().interpolate(values)

    def approx_position(self, dimension: int, value: float) -> float:
        """Fractional index of ``value`` along one axis, e.g. 1.5 halfway between breakpoints 1 and 2."""
        return self._require_engine().approx_position(dimension, value)

    def position_info(self, dimension: int, value: float) -> tuple[int, float]:
        """Low bracket index and fraction towards the next breakpoint."""
        return self._require_engine().locate(dimension, value)

    def lookup_many_by_values(self, points: Any) -> np.ndarray:
        """Interpolate an ``(n_points, N)`` array of points."""
        return self._require_engine().interpolate_many(points)

    def lookup_many_by_indices(self, indices: Any) -> np.ndarray:
        """Stored values for an ``(n_points, N)`` array of integer indices.

        Raises:
            IndexOutOfBoundsError: On the first index that is out of range or not a whole number.
        """
        return self._require_engine().lookup_many(indices)

    # ==== Result-returning queries ==== #

    @staticmethod
    def _query(func: Callable[..., T], *args: Any) -> LookupResult[T]:
        try:
            return LookupResult(value=func(*args))
        except LookupTableError as e:
            return LookupResult(error=e)

    def query_index_at(self, indices: Sequence[int]) -> LookupResult[int]:
        return self._query(self.index_at, indices)

    def query_by_indices(self, indices: Sequence[int]) -> LookupResult[float]:
        return self._query(self.lookup_by_indices, indices)

    def query_by_values(self, values: Sequence[float]) -> LookupResult[float]:
        return self._query(self.lookup_by_values, values)

    # ==== Interop ==== #

    def to_dataarray(self, dims: Sequence[Hashable] | None = None, name: Hashable | None = None) -> xr.DataArray:
        """View the table as a DataArray with one dimension per axis."""
        engine = self._require_engine()
        if dims is None:
            dims = [f"dim_{i}" for i in range(engine.ndim)]
        if len(dims) != engine.ndim:
            msg = f"Expected {engine.ndim} dimension names, got {len(dims)}."
            raise ValueError(msg)
        data = engine.data
        return xr.DataArray(
            data.values.reshape(data.shape, order="F").copy(),
            dims=list(dims),
            coords={dim: axis.copy() for dim, axis in zip(dims, data.axes)},
            name=name,
        )

    def resample(self, new_axes: Sequence[Sequence[float]]) -> LookupTable:
        """Evaluate the table on a new grid and return it as a new table.

        Raises:
            MalformedSourceDataError: If the new axes are not strictly increasing.
            OutOfDomainError: If any new breakpoint lies outside the current grid.
        """
        engine = self._require_engine()
        axes = [np.asarray(axis, dtype=np.float64) for axis in new_axes]
        if len(axes) != engine.ndim:
            msg = f"Expected {engine.ndim} axes, got {len(axes)}."
            raise MalformedSourceDataError(msg)
        bad_axis = check_monotonically_increasing(axes)
        if bad_axis is not None:
            raise MalformedSourceDataError(f"axis {bad_axis} is not strictly increasing")

        grids = np.meshgrid(*axes, indexing="ij")
        points = np.stack([grid.ravel(order="F") for grid in grids], axis=-1)
        logger.debug("Resampling table of shape %s onto %s", self.shape, tuple(len(a) for a in axes))
        values = engine.interpolate_many(points)
        return LookupTable.from_table_data(validate_source_data(axes, values), approx_factor=self.approx_factor)

    def __repr__(self) -> str:
        if not self.valid:
            return "<LookupTable (invalid)>"
        return f"<LookupTable shape={self.shape}>"
