import numpy as np
import pytest
from helpers import flatten_axis0_fastest, linear_field

from monet_lookup import LookupTable


@pytest.fixture()
def table_2d():
    """Two axes of lengths 2 and 3 holding 1..6."""
    return LookupTable([[1.0, 2.0], [10.0, 20.0, 30.0]], [1, 2, 3, 4, 5, 6])


@pytest.fixture()
def axes_3d():
    return [
        np.array([0.0, 0.5, 2.0]),
        np.array([-1.0, 1.0]),
        np.array([0.1, 0.2, 0.3, 0.7]),
    ]


@pytest.fixture()
def table_3d(axes_3d):
    """Asymmetric 3 x 2 x 4 table of a linear field."""
    return LookupTable(axes_3d, flatten_axis0_fastest(axes_3d, linear_field))
