import multiprocessing.pool
import numbers
from contextlib import closing

import numpy

from . import rfuncs
from .masks import EXACT, GENERIC, NaN, as_separate_validity, kind_of, nanmask

BIG_SLICES = 1 << 24  # 16M elements, min input size before we use threads <shrug>


class reducer:
    """A reduction of a NumPy array with missing values, whole or along one axis.

    The `arr` arg may be a single NumPy array, where missing values are
    represented by NaN, or a (values, validity) tuple of arrays, where
    validity is False for missing values.

    If `axis` is None (the default), reductions return a single (NumPy)
    scalar for the whole array. If `axis` is an integer, reductions return
    an array of the same shape as the input, but of length 1 along `axis`;
    if `drop` is also True (and the input has more than one dimension),
    that axis is removed from the output.

    The reducer itself does not own the output; instead, use rfunc objects
    (or the shortcut methods on the reducer, like `mean`) to calculate the
    reductions. Multiple rfuncs may apply to a single reducer.

    Inputs which cannot hold NaN (arrays of integers or rationals) are never
    masked at all unless the caller passed a separate validity array;
    reductions over them skip straight to the unmasked NumPy operation.
    """

    poolsize = 4
    debug = False
    check_interrupt = None
    pool_class = multiprocessing.pool.ThreadPool

    def __init__(self, arr, axis=None, drop=False):
        self.values, self.validity = as_separate_validity(arr)
        self.kind = kind_of(self.values)
        if self.kind == GENERIC:
            self.values = numpy.where(self.validity, self.values, NaN).astype(float)
            self.validity &= nanmask(self.values)
            self.kind = kind_of(self.values)
        self.all_valid = self.kind == EXACT and not isinstance(arr, tuple)

        self.axis = axis
        self.drop = drop

    # ------------------------------ whole axes ------------------------------ #

    @property
    def reduce_axis(self):
        """self.axis, validated and made non-negative, or None."""
        axis = self.axis
        if axis is None:
            return None

        ndim = self.values.ndim
        if (
            isinstance(axis, bool)
            or not isinstance(axis, numbers.Integral)
            or not -ndim <= axis < ndim
        ):
            raise ValueError(
                "axis %r is out of bounds for an array of dimension %d" % (axis, ndim)
            )
        return int(axis) % ndim

    @property
    def keepdims(self):
        return self.axis is not None

    @property
    def shape(self):
        """The shape of the output of a reduction over self.reduce_axis."""
        return self._kept_shape(self.reduce_axis)

    def _kept_shape(self, axis):
        if axis is None:
            return ()
        shape = self.values.shape
        return shape[:axis] + (1,) + shape[axis + 1 :]

    def masked(self, fill=0):
        """Return self.values, with `fill` wherever a value is missing."""
        if self.all_valid:
            return self.values
        return numpy.where(self.validity, self.values, fill)

    def valid_counts(self):
        """Return the number of valid values reduced into each output cell."""
        axis = self.reduce_axis
        if self.all_valid:
            N = self.values.size if axis is None else self.values.shape[axis]
            return numpy.full(self.shape, N, dtype=int)
        return numpy.asarray(
            numpy.count_nonzero(self.validity, axis=axis, keepdims=self.keepdims)
        )

    def finish(self, output, axis):
        """Return the given output region as a scalar, or possibly drop `axis`."""
        if axis is None:
            return output[()]
        if self.drop and output.ndim > 1 and output.shape[axis] == 1:
            return numpy.squeeze(output, axis=axis)
        return output

    # -------------------------------- slices -------------------------------- #

    @property
    def slice_axis(self):
        """The axis to slice along for order statistics, or None for the whole.

        Only 2-D arrays are sliced, and only along axis 0 or 1. Any other
        axis falls back to the whole array rather than raising an error.
        """
        axis = self.axis
        if self.values.ndim == 2 and not isinstance(axis, bool) and axis in (0, 1):
            return int(axis)
        return None

    @property
    def slice_shape(self):
        return self._kept_shape(self.slice_axis)

    @property
    def parallel(self):
        axis = self.slice_axis
        return (
            axis is not None
            and self.values.shape[1 - axis] > 2
            and self.values.size >= BIG_SLICES
        )

    def slices(self):
        """Yield (output index, 1-D array of valid values) for each slice."""
        values = rfuncs._as_float(self.values)
        validity = self.validity

        axis = self.slice_axis
        if axis is None:
            yield (), values[validity]
        elif axis == 0:
            for j in range(values.shape[1]):
                yield (0, j), values[:, j][validity[:, j]]
        else:
            for i in range(values.shape[0]):
                yield (i, 0), values[i][validity[i]]

    def each_slice(self, func):
        """Call func(index, values) for each slice, possibly in parallel.

        Each slice has its own index, so `func` may write to its own
        output cell without locking.
        """

        def fill_one(item):
            if self.check_interrupt is not None:
                self.check_interrupt()
            func(*item)

        if self.parallel:
            with closing(self.pool_class(self.poolsize)) as pool:
                pool.map(fill_one, self.slices())
        else:
            # The only reason to _not_ multithread this is the extra overhead;
            # for example, if there are only a handful of slices, or we expect
            # each to be very fast because it is short.
            for item in self.slices():
                fill_one(item)

    # ------------------------------ calculate ------------------------------- #

    def calculate(self, funcs):
        """Return a list of reductions, one for each of the given rfuncs."""
        if self.debug:
            print("\nreducer.calculate(%s):" % (funcs,))
        results = [func.get_initial_regions(self) for func in funcs]
        if self.debug:
            print("INITIAL REGIONS:")
            for func, regions in zip(funcs, results):
                print(func, ":", regions)

        for func, regions in zip(funcs, results):
            func.fill(self, regions)
            if self.debug:
                print(func, ":=", regions)

        output = [func.reduce(self, regions) for func, regions in zip(funcs, results)]
        if self.debug:
            print("OUTPUT:")
            for func, out in zip(funcs, output):
                print(func, ":", out)
        return output

    # -------------------------------- rfuncs -------------------------------- #

    def sum(self):
        """Return the sum of self.values, ignoring missing values.

        Missing values count as 0, so the sum of no valid values is 0.
        """
        return self.calculate([rfuncs.rfunc_sum()])[0]

    def mean(self, weights=None):
        """Return the mean of self.values, ignoring missing values.

        If `weights` is given and not None, it must be a NumPy array of numeric
        weight values, of the same shape as self.values. The mean of no valid
        values is NaN.
        """
        return self.calculate([rfuncs.rfunc_mean(weights)])[0]

    def std(self, weights=None):
        """Return the standard deviation of self.values, ignoring missing values.

        If `weights` is given and not None, it must be a NumPy array of numeric
        reliability weights, of the same shape as self.values. The standard
        deviation of fewer than 2 valid values is NaN (or inf).
        """
        return self.calculate([rfuncs.rfunc_stddev(weights)])[0]

    def minimum(self):
        """Return the min of self.values, ignoring missing values."""
        return self.calculate([rfuncs.rfunc_min()])[0]

    def maximum(self):
        """Return the max of self.values, ignoring missing values."""
        return self.calculate([rfuncs.rfunc_max()])[0]

    def extrema(self):
        """Return a (min, max) tuple of self.values, ignoring missing values."""
        mins, maxes = self.calculate([rfuncs.rfunc_min(), rfuncs.rfunc_max()])
        return mins, maxes

    def range(self):
        """Return max - min of self.values, ignoring missing values."""
        mins, maxes = self.extrema()
        if numpy.asarray(mins).dtype.kind == "b":
            # NumPy refuses to subtract booleans; count them as 0 and 1.
            return numpy.subtract(maxes, mins, dtype=numpy.int_)
        return maxes - mins

    def pctile(self, p):
        """Return the p'th percentile of self.values, ignoring missing values.

        The `p` arg must be a number between 0 and 100 inclusive.
        """
        return self.calculate([rfuncs.rfunc_pctile(p)])[0]

    def median(self):
        """Return the median of self.values, ignoring missing values."""
        return self.calculate([rfuncs.rfunc_median()])[0]

    def mad(self):
        """Return the median absolute deviation from the median of self.values."""
        return self.calculate([rfuncs.rfunc_mad()])[0]

    def aad(self):
        """Return the mean absolute deviation from the mean of self.values."""
        # Keep the axis of the inner means so they broadcast against values.
        means = reducer((self.values, self.validity), self.axis).mean()
        deviations = numpy.abs(self.values - means)
        return reducer((deviations, self.validity), self.axis, self.drop).mean()


def nansum(arr, axis=None, drop=False):
    """Return the sum of `arr`, ignoring NaNs, optionally along `axis`."""
    return reducer(arr, axis, drop).sum()


def nanmean(arr, weights=None, axis=None, drop=False):
    """Return the (optionally weighted) mean of `arr`, ignoring NaNs."""
    return reducer(arr, axis, drop).mean(weights)


def nanstd(arr, weights=None, axis=None, drop=False):
    """Return the (optionally weighted) standard deviation of `arr`, ignoring NaNs."""
    return reducer(arr, axis, drop).std(weights)


def nanminimum(arr, axis=None, drop=False):
    """Return the smallest non-NaN value of `arr`, optionally along `axis`."""
    return reducer(arr, axis, drop).minimum()


def nanmaximum(arr, axis=None, drop=False):
    """Return the largest non-NaN value of `arr`, optionally along `axis`."""
    return reducer(arr, axis, drop).maximum()


def nanextrema(arr, axis=None, drop=False):
    """Return (nanminimum, nanmaximum) of `arr`, optionally along `axis`."""
    return reducer(arr, axis, drop).extrema()


def nanrange(arr, axis=None, drop=False):
    """Return nanmaximum - nanminimum of `arr`, optionally along `axis`."""
    return reducer(arr, axis, drop).range()


def nanpctile(arr, p, axis=None, drop=False):
    """Return the p'th percentile of `arr`, ignoring NaNs.

    A valid percentile `p` must satisfy 0 <= p <= 100. If `axis` is 0 or 1
    and `arr` is 2-D, return the percentile of each column or row; for any
    other `axis`, return the percentile of the whole array.
    """
    return reducer(arr, axis, drop).pctile(p)


def nanmedian(arr, axis=None, drop=False):
    """Return the median of `arr`, ignoring NaNs; `axis` as for nanpctile."""
    return reducer(arr, axis, drop).median()


def nanmad(arr, axis=None, drop=False):
    """Return the median absolute deviation from the median of `arr`, ignoring NaNs.

    Note that for a Normal distribution, sigma = 1.4826 * MAD.
    """
    return reducer(arr, axis, drop).mad()


def nanaad(arr, axis=None, drop=False):
    """Return the mean absolute deviation from the mean of `arr`, ignoring NaNs.

    Note that for a Normal distribution, sigma = 1.253 * AAD.
    """
    return reducer(arr, axis, drop).aad()


def inpctile(arr, p):
    """Return a boolean array, True where `arr` is within its central p'th percentile.

    Values must be strictly greater than the (100 - p) / 2 percentile and
    strictly less than the (100 + p) / 2 percentile of the whole array,
    so for p=50, only values strictly inside the inter-quartile range are True.
    Missing values are always False.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentiles must be in the range [0, 100], not %r." % (p,))
    red = reducer(arr)
    offset = (100 - p) / 2
    lower, upper = red.calculate(
        [rfuncs.rfunc_pctile(offset), rfuncs.rfunc_pctile(100 - offset)]
    )
    with numpy.errstate(invalid="ignore"):
        return (lower < red.values) & (red.values < upper) & red.validity


def nanmax(a, b):
    """As numpy.maximum(a, b), but if either argument is NaN, return the other one."""
    a = numpy.asarray(a)
    b = numpy.asarray(b)
    with numpy.errstate(invalid="ignore"):
        result = numpy.where(a == a, numpy.where(b > a, b, a), b)
    if not result.shape:
        return result[()]
    return result


def nanmin(a, b):
    """As numpy.minimum(a, b), but if either argument is NaN, return the other one."""
    a = numpy.asarray(a)
    b = numpy.asarray(b)
    with numpy.errstate(invalid="ignore"):
        result = numpy.where(a == a, numpy.where(b < a, b, a), b)
    if not result.shape:
        return result[()]
    return result
