import numpy as np


def linear_field(*coords):
    """f = x0 + 10 * x1 + 100 * x2 + ..., reproduced exactly by multilinear interpolation."""
    return sum(c * 10.0**i for i, c in enumerate(coords))


def flatten_axis0_fastest(axes, func):
    """Evaluate ``func`` on the outer product of ``axes`` in table storage order."""
    grids = np.meshgrid(*axes, indexing="ij")
    return func(*grids).ravel(order="F")
