import math

import numpy

from .masks import EXACT, as_separate_validity, kind_of
from .reducers import reducer


def movmean(x, n):
    """Return the simple moving average of `x` in 1 or 2 dimensions, ignoring NaNs.

    Each output value is the mean of the input values within (n - 1) / 2
    positions of it along each axis: n values in 1-D, or an n x n square
    in 2-D. For the window to be symmetric, `n` must be odd; if it is not,
    the next odd integer greater than `n` is used instead.

    Windows are clipped to the bounds of `x`; nothing is padded or wrapped,
    so values near the edges average over fewer inputs. NaN values within
    a window are excluded from both its sum and its count.

    The output has the same shape as `x`: floats, or Fractions if `x` holds
    rationals.
    """
    values, validity = as_separate_validity(x)
    if not n >= 1:
        raise ValueError("Moving average span must be at least 1, not %r." % (n,))
    halfspan = int(math.ceil((n - 1) / 2))

    if values.dtype.kind == "O" and kind_of(values) == EXACT:
        dtype = object
    else:
        dtype = float
    means = numpy.empty(values.shape, dtype=dtype)

    def window(i, extent):
        return slice(max(i - halfspan, 0), min(i + halfspan + 1, extent))

    if values.ndim == 1:
        (length,) = values.shape
        for i in range(length):
            w = window(i, length)
            means[i] = reducer((values[w], validity[w])).mean()
    elif values.ndim == 2:
        nrows, ncols = values.shape
        for i in range(nrows):
            rows = window(i, nrows)
            for j in range(ncols):
                cols = window(j, ncols)
                means[i, j] = reducer(
                    (values[rows, cols], validity[rows, cols])
                ).mean()
    else:
        raise ValueError(
            "Moving averages need a 1-D or 2-D array, not %d-D." % values.ndim
        )

    return means
