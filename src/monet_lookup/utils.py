from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from monet_lookup.constants import APPROX_EQUAL_FACTOR, MIN_DIMENSIONS
from monet_lookup.errors import MalformedSourceDataError

"""
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

_EPS = float(np.finfo(np.float64).eps)


def is_approx_equal(a: float, b: float, factor: float = APPROX_EQUAL_FACTOR) -> bool:
    """Check whether two floats agree to within a few ulps of the larger magnitude.

    An absolute epsilon would misclassify breakpoints on axes of very different
    scales, so the tolerance grows with ``max(|a|, |b|)``.
    """
    diff = abs(a - b)
    scale = max(abs(a), abs(b))
    return diff <= scale * _EPS * factor


def lerp(a: float, b: float, fraction: float) -> float:
    """Linear interpolation between ``a`` and ``b``.

    Exact at both ends: ``fraction == 0`` gives ``a`` and ``fraction == 1`` gives ``b``,
    even when the other end is NaN or infinite. Fractions outside [0, 1] extrapolate.
    """
    if fraction == 0.0:
        return a
    if fraction == 1.0:
        return b
    return (1.0 - fraction) * a + fraction * b


def ilerp(a: float, b: float, value: float, factor: float = APPROX_EQUAL_FACTOR) -> float:
    """Inverse of :func:`lerp`: the fraction of the way ``value`` is from ``a`` to ``b``.

    Returns 0.0 when ``a`` and ``b`` are approximately equal.
    """
    if is_approx_equal(a, b, factor):
        return 0.0
    return (value - a) / (b - a)


@dataclass(frozen=True)
class TableData:
    """Validated independent axes and the flattened dependent values.

    Values are stored in mixed-radix order with axis 0 varying fastest, so the
    flat offset of ``(i, j, k)`` is ``i + j * n0 + k * n0 * n1``.
    """

    axes: tuple[np.ndarray, ...]
    values: np.ndarray
    shape: tuple[int, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", tuple(len(axis) for axis in self.axes))

    @property
    def ndim(self) -> int:
        return len(self.axes)

    @property
    def size(self) -> int:
        return int(self.values.shape[0])

    def axis_arena(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Concatenate the axes into one flat array.

        Returns:
            (arena, offsets, sizes) where axis ``d`` is
            ``arena[offsets[d]:offsets[d] + sizes[d]]``.
        """
        sizes = np.array(self.shape, dtype=np.int64)
        offsets = np.zeros(len(sizes), dtype=np.int64)
        if len(sizes) > 1:
            offsets[1:] = np.cumsum(sizes[:-1])
        arena = np.ascontiguousarray(np.concatenate(self.axes), dtype=np.float64)
        return arena, offsets, sizes


def _as_breakpoints(data: Any, what: str) -> np.ndarray:
    try:
        arr = np.array(data, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise MalformedSourceDataError(f"{what} is not a sequence of numbers ({e})") from e
    if arr.ndim != 1:
        raise MalformedSourceDataError(f"{what} must be one-dimensional, got shape {arr.shape}")
    arr.setflags(write=False)
    return arr


def split_data_set(data_set: Sequence[Any], values: Sequence[float] | None = None) -> tuple[list[Any], Any]:
    """Separate the combined form (axes followed by values) from the split form."""
    if values is not None:
        return list(data_set), values
    data_set = list(data_set)
    if not data_set:
        raise MalformedSourceDataError("data set is empty")
    return data_set[:-1], data_set[-1]


def check_monotonically_increasing(axes: Sequence[np.ndarray]) -> int | None:
    """Return the index of the first axis that is not strictly increasing, or None."""
    for i, axis in enumerate(axes):
        if len(axis) > 1 and not np.all(np.diff(axis) > 0):
            return i
    return None


def validate_source_data(data_set: Sequence[Any], values: Sequence[float] | None = None) -> TableData:
    """Validate a candidate data set and return it as :class:`TableData`.

    Accepts either the combined form, ``[axis_0, ..., axis_n-1, values]``, or the
    split form, ``(axes, values)``. Both are validated identically.

    Raises:
        MalformedSourceDataError: With a description of the first violation found.
    """
    try:
        raw_axes, raw_values = split_data_set(data_set, values)
    except TypeError as e:
        raise MalformedSourceDataError(f"data set is not a sequence ({e})") from e

    if len(raw_axes) < MIN_DIMENSIONS:
        raise MalformedSourceDataError(
            f"at least {MIN_DIMENSIONS} independent axes are required, got {len(raw_axes)}"
        )

    axes = tuple(_as_breakpoints(axis, f"axis {i}") for i, axis in enumerate(raw_axes))
    dep = _as_breakpoints(raw_values, "values")

    for i, axis in enumerate(axes):
        if len(axis) == 0:
            raise MalformedSourceDataError(f"axis {i} is empty")
        if np.isnan(axis).any():
            raise MalformedSourceDataError(f"axis {i} contains NaN")

    required = int(np.prod([len(axis) for axis in axes], dtype=np.int64))
    if required != len(dep):
        raise MalformedSourceDataError(
            f"expected {required} values for axes of shape {tuple(len(a) for a in axes)}, got {len(dep)}"
        )

    bad_axis = check_monotonically_increasing(axes)
    if bad_axis is not None:
        raise MalformedSourceDataError(f"axis {bad_axis} is not strictly increasing")

    return TableData(axes=axes, values=dep)


def is_valid_source_data(data_set: Sequence[Any], values: Sequence[float] | None = None) -> bool:
    """Predicate form of :func:`validate_source_data`; never raises."""
    try:
        validate_source_data(data_set, values)
    except MalformedSourceDataError:
        return False
    return True
