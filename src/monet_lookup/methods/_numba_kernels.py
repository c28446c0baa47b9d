"""
Numba-optimized kernels for lookup table indexing and interpolation.

All kernels address the independent axes through a flat arena: axis ``d`` is
``arena[offsets[d]:offsets[d] + sizes[d]]``. Kernels cannot raise typed
exceptions, so failures are reported as status codes from
``monet_lookup.constants`` and translated by the interpolation engine.
"""

import numpy as np
from numba import jit, prange

from monet_lookup.constants import (
    STATUS_EMPTY_AXIS,
    STATUS_INDEX_OUT_OF_BOUNDS,
    STATUS_OFFSET_OUT_OF_RANGE,
    STATUS_OK,
    STATUS_OUT_OF_DOMAIN,
)

EPS = np.finfo(np.float64).eps


@jit(nopython=True, nogil=True, cache=True)
def approx_equal(a, b, factor):
    """Relative equality scaled to the larger magnitude of the two values."""
    return abs(a - b) <= max(abs(a), abs(b)) * EPS * factor


@jit(nopython=True, nogil=True, cache=True)
def lerp(a, b, fraction):
    # Endpoints are returned as stored so non-finite neighbours never leak in
    if fraction == 0.0:
        return a
    if fraction == 1.0:
        return b
    return (1.0 - fraction) * a + fraction * b


@jit(nopython=True, nogil=True, cache=True)
def ilerp(a, b, value, factor):
    if approx_equal(a, b, factor):
        return 0.0
    return (value - a) / (b - a)


@jit(nopython=True, nogil=True, cache=True)
def encode_index(multi_index, sizes, n_values):
    """
    Mixed-radix encoding of a multi-index into a flat offset, axis 0 least significant.

    Args:
        multi_index: Per-dimension indices (ndim,)
        sizes: Per-dimension breakpoint counts (ndim,)
        n_values: Length of the flat value array

    Returns:
        (status, result). On success result is the offset; on an out-of-range
        component it is the offending dimension; on an out-of-range offset it is
        the offset itself.
    """
    offset = 0
    stride = 1
    for d in range(sizes.shape[0]):
        idx = multi_index[d]
        if idx < 0 or idx >= sizes[d]:
            return STATUS_INDEX_OUT_OF_BOUNDS, d
        offset += idx * stride
        stride *= sizes[d]
    if offset >= n_values:
        return STATUS_OFFSET_OUT_OF_RANGE, offset
    return STATUS_OK, offset


@jit(nopython=True, nogil=True, cache=True)
def bracket(arena, offset, size, value, factor):
    """
    Binary search for the breakpoints surrounding ``value`` along one axis.

    Returns:
        (status, low, fraction). A value approximately equal to a breakpoint
        resolves to that breakpoint with a fraction of exactly 0.0.
    """
    if size == 0:
        return STATUS_EMPTY_AXIS, 0, 0.0
    first = arena[offset]
    last = arena[offset + size - 1]
    # Written so that NaN is rejected too
    if not (value >= first and value <= last):
        return STATUS_OUT_OF_DOMAIN, 0, 0.0

    left = 0
    right = size
    mid = (left + right) // 2
    while left < mid and mid < right:
        if approx_equal(value, arena[offset + mid], factor):
            left = mid
            right = mid
            break
        if value < arena[offset + mid]:
            right = mid
        else:
            left = mid
        mid = (left + right) // 2

    if left == right or right >= size:
        return STATUS_OK, left, 0.0
    return STATUS_OK, left, ilerp(arena[offset + left], arena[offset + right], value, factor)


@jit(nopython=True, nogil=True, cache=True)
def approx_position(arena, offset, size, value, factor):
    """
    Fractional position of ``value`` along one axis.

    Returns:
        (status, position) where position is ``low + fraction``.
    """
    status, low, fraction = bracket(arena, offset, size, value, factor)
    if status != STATUS_OK:
        return status, 0.0
    return STATUS_OK, low + fraction


@jit(nopython=True, nogil=True, cache=True)
def position_info(arena, offset, size, value, factor):
    """
    Bracket for ``value``: the low index and the fraction towards the next breakpoint.

    A value on the last breakpoint is reported as the previous bracket with a
    fraction of 1.0, so ``low + 1`` always stays inside the axis. The fraction
    comes straight from the bracket search, never from splitting ``low + fraction``.
    """
    status, low, fraction = bracket(arena, offset, size, value, factor)
    if status != STATUS_OK:
        return status, 0, 0.0
    if low > 0 and low == size - 1:
        low -= 1
        fraction += 1.0
    return STATUS_OK, low, fraction


@jit(nopython=True, nogil=True, cache=True)
def interpolate_point(arena, offsets, sizes, values, point, factor):
    """
    Multilinear interpolation of one point.

    Corners are enumerated as a binary counter with axis 0 as the least significant
    bit, the same order as ``encode_index``. Collapsing therefore pairs neighbours
    along axis 0 first, then axis 1, and so on, for ``2**ndim - 1`` blends in total.

    Returns:
        (status, dimension, value). ``dimension`` is the failing axis or -1.
    """
    ndim = sizes.shape[0]
    lows = np.empty(ndim, dtype=np.int64)
    highs = np.empty(ndim, dtype=np.int64)
    fractions = np.empty(ndim, dtype=np.float64)

    for d in range(ndim):
        status, low, fraction = position_info(arena, offsets[d], sizes[d], point[d], factor)
        if status != STATUS_OK:
            return status, d, np.nan
        lows[d] = low
        fractions[d] = fraction
        # Single-breakpoint axes have no upper neighbour
        highs[d] = low + 1 if low + 1 < sizes[d] else low

    n_corners = 1 << ndim
    corners = np.empty(n_corners, dtype=np.float64)
    index = np.empty(ndim, dtype=np.int64)
    n_values = values.shape[0]
    for c in range(n_corners):
        for d in range(ndim):
            index[d] = highs[d] if (c >> d) & 1 else lows[d]
        status, flat = encode_index(index, sizes, n_values)
        if status != STATUS_OK:
            return status, -1, np.nan
        corners[c] = values[flat]

    count = n_corners
    for d in range(ndim):
        half = count >> 1
        for j in range(half):
            corners[j] = lerp(corners[2 * j], corners[2 * j + 1], fractions[d])
        count = half

    return STATUS_OK, -1, corners[0]


@jit(nopython=True, nogil=True, parallel=True, cache=True)
def interpolate_points(arena, offsets, sizes, values, points, factor):
    """
    Interpolate many points in parallel.

    Args:
        points: Query points (n_points, ndim)

    Returns:
        (result, status, dimension), each of length n_points.
    """
    n_points = points.shape[0]
    result = np.full(n_points, np.nan, dtype=np.float64)
    status = np.zeros(n_points, dtype=np.int64)
    dimension = np.full(n_points, -1, dtype=np.int64)

    for i in prange(n_points):
        s, d, v = interpolate_point(arena, offsets, sizes, values, points[i], factor)
        status[i] = s
        dimension[i] = d
        result[i] = v

    return result, status, dimension


@jit(nopython=True, nogil=True, parallel=True, cache=True)
def lookup_indices(sizes, values, indices):
    """
    Gather stored values for many multi-indices (n_points, ndim).

    Returns:
        (result, status, detail), where detail follows ``encode_index``.
    """
    n_points = indices.shape[0]
    n_values = values.shape[0]
    result = np.full(n_points, np.nan, dtype=np.float64)
    status = np.zeros(n_points, dtype=np.int64)
    detail = np.full(n_points, -1, dtype=np.int64)

    for i in prange(n_points):
        s, r = encode_index(indices[i], sizes, n_values)
        status[i] = s
        detail[i] = r
        if s == STATUS_OK:
            result[i] = values[r]

    return result, status, detail
