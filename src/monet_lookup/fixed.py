"""
Fixed-arity conveniences for 2-D and 3-D tables.

These only check the table's dimensionality and forward to the N-dimensional lookups.
"""

from __future__ import annotations

from monet_lookup.errors import DimensionMismatchError
from monet_lookup.table import LookupTable


def _require_dimensions(table: LookupTable, ndim: int) -> None:
    # An invalid table reports InvalidTableError from the forwarded call instead
    if table.valid and table.dimensions != ndim:
        msg = f"Expected a {ndim}-dimensional table, got {table.dimensions} dimensions."
        raise DimensionMismatchError(msg, expected=ndim, received=table.dimensions)


def index_at_2d(table: LookupTable, i: int, j: int) -> int:
    """Flat value offset of (i, j) in a 2-D table."""
    _require_dimensions(table, 2)
    return table.index_at((i, j))


def lookup_by_indices_2d(table: LookupTable, i: int, j: int) -> float:
    """Stored value at (i, j)."""
    _require_dimensions(table, 2)
    return table.lookup_by_indices((i, j))


def lookup_by_values_2d(table: LookupTable, x: float, y: float) -> float:
    """Interpolated value at (x, y).

    Raises:
        DimensionMismatchError: If the table is valid but not 2-dimensional.
    """
    _require_dimensions(table, 2)
    return table.lookup_by_values((x, y))


def index_at_3d(table: LookupTable, i: int, j: int, k: int) -> int:
    """Flat value offset of (i, j, k) in a 3-D table."""
    _require_dimensions(table, 3)
    return table.index_at((i, j, k))


def lookup_by_indices_3d(table: LookupTable, i: int, j: int, k: int) -> float:
    """Stored value at (i, j, k)."""
    _require_dimensions(table, 3)
    return table.lookup_by_indices((i, j, k))


def lookup_by_values_3d(table: LookupTable, x: float, y: float, z: float) -> float:
    """Interpolated value at (x, y, z).

    Raises:
        DimensionMismatchError: If the table is valid but not 3-dimensional.
    """
    _require_dimensions(table, 3)
    return table.lookup_by_values((x, y, z))
