"""
Tests for the LookupTable lifecycle, metadata and lookups.
"""

import itertools
import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from monet_lookup import (
    DimensionMismatchError,
    ErrorKind,
    IndexOutOfBoundsError,
    InvalidTableError,
    LookupTable,
    OutOfDomainError,
)

from helpers import linear_field


def test_empty_table_is_invalid():
    table = LookupTable()
    assert not table.valid
    assert table.dimensions == 0
    assert table.dep_data_size == 0
    assert table.shape == ()
    assert table.axes == []
    assert table.values.size == 0


def test_combined_and_split_forms_agree():
    combined = LookupTable([[1, 2], [10, 20, 30], [1, 2, 3, 4, 5, 6]])
    split = LookupTable([[1, 2], [10, 20, 30]], [1, 2, 3, 4, 5, 6])
    assert combined.valid and split.valid
    assert combined.shape == split.shape == (2, 3)
    np.testing.assert_array_equal(combined.values, split.values)


def test_metadata(table_2d):
    assert table_2d.valid
    assert table_2d.dimensions == 2
    assert table_2d.dep_data_size == 6
    assert table_2d.indep_data_size(0) == 2
    assert table_2d.indep_data_size(1) == 3
    with pytest.raises(IndexOutOfBoundsError):
        table_2d.indep_data_size(2)
    with pytest.raises(IndexOutOfBoundsError):
        LookupTable().indep_data_size(0)


def test_accessors_return_copies(table_2d):
    table_2d.values[0] = 100.0
    table_2d.axes[0][0] = -5.0
    assert table_2d.lookup_by_indices((0, 0)) == 1.0
    assert table_2d.axes[0][0] == 1.0


def test_lookup_by_indices(table_2d):
    """Index (1, 2) of the 2 x 3 table is the last stored value."""
    assert table_2d.lookup_by_indices((1, 2)) == 6.0
    assert table_2d.index_at((1, 2)) == 5
    assert table_2d.lookup_by_indices((1, 0)) == 2.0


def test_lookup_by_values(table_2d):
    """The centre of the first cell is the mean of its four corners."""
    assert table_2d.lookup_by_values((1.5, 15)) == 2.5


def test_lookup_by_values_on_upper_boundary(table_2d):
    assert table_2d.lookup_by_values((2.0, 30.0)) == 6.0
    assert table_2d.lookup_by_values((2.0, 25.0)) == 5.0


def test_lookup_by_values_out_of_domain(table_2d):
    for point in [(0.99, 15.0), (2.01, 15.0), (1.5, 9.0), (1.5, 31.0)]:
        with pytest.raises(OutOfDomainError):
            table_2d.lookup_by_values(point)


def test_exact_at_grid_points(table_3d, axes_3d):
    for indices in itertools.product(*(range(len(a)) for a in axes_3d)):
        point = [axis[i] for axis, i in zip(axes_3d, indices)]
        assert table_3d.lookup_by_values(point) == table_3d.lookup_by_indices(indices)


def test_linear_field_reproduced(table_3d):
    point = (1.3, 0.2, 0.45)
    assert table_3d.lookup_by_values(point) == pytest.approx(linear_field(*point), rel=1e-12)


def test_blend_count_by_dimension():
    table_2d = LookupTable([[0, 1], [0, 1]], [1, 2, 3, 4])
    table_3d = LookupTable([[0, 1], [0, 1], [0, 1]], list(range(8)))
    assert table_2d.blend_count == 3
    assert table_3d.blend_count == 7
    for indices in itertools.product(range(2), repeat=2):
        assert table_2d.lookup_by_values(indices) == table_2d.lookup_by_indices(indices)
    for indices in itertools.product(range(2), repeat=3):
        assert table_3d.lookup_by_values(indices) == table_3d.lookup_by_indices(indices)


def test_populate_rejects_non_increasing_axis(table_2d, caplog):
    with caplog.at_level(logging.WARNING, logger="monet_lookup.table"):
        assert not table_2d.populate([[1, 3, 2], [10, 20]], [0] * 6)
    assert "not strictly increasing" in caplog.text
    assert not table_2d.valid
    assert table_2d.dimensions == 0
    assert table_2d.dep_data_size == 0
    assert table_2d.last_error is not None
    assert table_2d.last_error.kind is ErrorKind.MALFORMED_SOURCE_DATA


def test_populate_rejects_size_mismatch():
    table = LookupTable([[1, 2], [10, 20, 30]], [1, 2, 3])
    assert not table.valid
    assert "expected 6 values" in table.last_error.reason


def test_populate_is_idempotent():
    data = ([[1, 2], [10, 20, 30]], [1, 2, 3, 4, 5, 6])
    once = LookupTable(*data)
    twice = LookupTable(*data)
    assert twice.populate(*data)
    assert once.shape == twice.shape
    np.testing.assert_array_equal(once.values, twice.values)
    for a, b in zip(once.axes, twice.axes):
        np.testing.assert_array_equal(a, b)
    assert once.lookup_by_values((1.2, 27.0)) == twice.lookup_by_values((1.2, 27.0))


def test_populate_replaces_data(table_2d):
    assert table_2d.populate([[0, 1], [0, 1], [0, 1]], list(range(8)))
    assert table_2d.dimensions == 3
    assert table_2d.lookup_by_indices((1, 1, 1)) == 7.0


def test_is_valid_source_data_does_not_mutate(table_2d):
    assert not table_2d.is_valid_source_data([[2, 1], [1, 2]], [0] * 4)
    assert table_2d.valid
    assert table_2d.is_valid_source_data([[1, 2], [1, 2]], [0] * 4)
    assert table_2d.shape == (2, 3)


def test_reset(table_2d):
    table_2d.reset()
    assert not table_2d.valid
    assert table_2d.dimensions == 0
    with pytest.raises(InvalidTableError):
        table_2d.lookup_by_indices((0, 0))


@pytest.mark.parametrize(
    "call",
    [
        lambda t: t.index_at((0, 0)),
        lambda t: t.lookup_by_indices((0, 0)),
        lambda t: t.lookup_by_values((1.0, 1.0)),
        lambda t: t.approx_position(0, 1.0),
        lambda t: t.position_info(0, 1.0),
        lambda t: t.lookup_many_by_values([[1.0, 1.0]]),
        lambda t: t.lookup_many_by_indices([[0, 0]]),
        lambda t: t.to_dataarray(),
    ],
)
def test_invalid_table_queries_raise(call):
    with pytest.raises(InvalidTableError):
        call(LookupTable())


def test_dimension_mismatch(table_2d):
    with pytest.raises(DimensionMismatchError):
        table_2d.lookup_by_values((1.5,))
    with pytest.raises(DimensionMismatchError):
        table_2d.lookup_by_indices((0, 0, 0))


def test_index_out_of_bounds(table_2d):
    with pytest.raises(IndexOutOfBoundsError):
        table_2d.lookup_by_indices((2, 0))
    with pytest.raises(IndexOutOfBoundsError):
        table_2d.index_at((0, 3))
    # IndexOutOfBoundsError is also an IndexError
    with pytest.raises(IndexError):
        table_2d.index_at((0, 3))


def test_position_info(table_2d):
    assert table_2d.position_info(1, 15.0) == (0, 0.5)
    assert table_2d.position_info(1, 30.0) == (1, 1.0)
    assert table_2d.approx_position(1, 15.0) == 0.5


def test_query_adapters(table_2d):
    result = table_2d.query_by_values((1.5, 15))
    assert result.ok
    assert result.value == 2.5
    assert result.unwrap() == 2.5

    result = table_2d.query_by_values((3.0, 15))
    assert not result.ok
    assert result.kind is ErrorKind.OUT_OF_DOMAIN
    with pytest.raises(OutOfDomainError):
        result.unwrap()

    assert table_2d.query_index_at((1, 2)).value == 5
    assert table_2d.query_by_indices((5, 0)).kind is ErrorKind.INDEX_OUT_OF_BOUNDS
    assert table_2d.query_by_indices((0,)).kind is ErrorKind.DIMENSION_MISMATCH
    assert LookupTable().query_by_values((1.0, 1.0)).kind is ErrorKind.INVALID_TABLE


def test_lookup_many(table_2d):
    points = np.array([[1.5, 15.0], [2.0, 30.0], [1.0, 10.0]])
    np.testing.assert_array_equal(table_2d.lookup_many_by_values(points), [2.5, 6.0, 1.0])
    np.testing.assert_array_equal(table_2d.lookup_many_by_indices([[1, 2], [0, 1]]), [6.0, 3.0])


def test_approx_factor_is_configurable():
    table = LookupTable([[1.0, 2.0], [1.0, 2.0]], [0, 1, 2, 3], approx_factor=1e6)
    assert table.approx_factor == 1e6
    # Within the widened tolerance the query snaps onto the breakpoint
    assert table.position_info(0, 2.0 - 1e-12) == (0, 1.0)


def test_concurrent_reads(table_3d, axes_3d):
    rng = np.random.default_rng(11)
    points = np.column_stack([rng.uniform(a[0], a[-1], size=64) for a in axes_3d])
    expected = [table_3d.lookup_by_values(p) for p in points]
    with ThreadPoolExecutor(max_workers=4) as pool:
        actual = list(pool.map(table_3d.lookup_by_values, points))
    assert actual == expected


def test_repr(table_2d):
    assert repr(table_2d) == "<LookupTable shape=(2, 3)>"
    assert repr(LookupTable()) == "<LookupTable (invalid)>"


@pytest.mark.parametrize("bad", [np.nan, np.inf])
def test_grid_point_lookup_with_non_finite_neighbour(bad):
    """Exact grid queries return the stored value whatever their neighbours hold."""
    table = LookupTable([[0.0, 1.0], [0.0, 1.0]], [1.0, bad, 3.0, 4.0])
    assert table.valid
    assert table.lookup_by_values((0.0, 0.0)) == 1.0
    assert table.lookup_by_values((0.0, 1.0)) == 3.0
    # upper boundary resolves to fraction 1.0 with the non-finite value as the low corner
    table = LookupTable([[0.0, 1.0], [0.0, 1.0]], [bad, 2.0, 3.0, 4.0])
    assert table.lookup_by_values((1.0, 0.0)) == 2.0
    assert table.lookup_by_values((1.0, 1.0)) == 4.0


def test_fractional_indices_are_rejected(table_2d):
    with pytest.raises(IndexOutOfBoundsError):
        table_2d.lookup_by_indices((0.7, 1.9))
    with pytest.raises(IndexOutOfBoundsError):
        table_2d.index_at((1, 0.5))
    with pytest.raises(IndexOutOfBoundsError):
        table_2d.lookup_many_by_indices([[0.5, 0]])
    assert table_2d.query_by_indices((0.7, 1.9)).kind is ErrorKind.INDEX_OUT_OF_BOUNDS
    assert table_2d.lookup_by_indices((1.0, 2.0)) == 6.0
