"""Reduction functions for nanstats.

These take a `reducer` as input and return NumPy arrays (or scalars) as output
from their `reduce` methods. In between, they create, fill, and reduce
"regions" (NumPy arrays) as intermediate workspaces. The number of regions
and their dtype depends on the function: rfunc_sum, for example, uses one
region and returns it nearly unchanged, while rfunc_mean uses separate "sums"
and "valid_counts" regions as the numerator and denominator, dividing them
in its `reduce` method to return a single array of means.

Regions have the shape of the output: () when reducing the whole array,
or the shape of the input with the reduced axis at length 1 otherwise.
The reducer removes that axis after `reduce` if asked to "drop" it.

Missing values (NaN, or False in a separate validity array) contribute
exactly nothing to any reduction: 0 to every sum, weighted sum, and count.
A group with no valid values at all therefore divides 0 by 0, and returns NaN
(its sum, however, is simply 0). Nothing here raises for such degenerate input,
nor for a variance of a single value; test outputs with numpy.isnan instead.
"""

import numpy

from .masks import EXACT, NaN


def _sum_dtype(values):
    kind = values.dtype.kind
    if kind in "bi":
        return numpy.result_type(values.dtype, numpy.int_)
    if kind == "u":
        return numpy.result_type(values.dtype, numpy.uint)
    return values.dtype


def _as_float(values):
    if values.dtype.kind in "fiu":
        return values
    return values.astype(float)


class rfunc:
    """A base class for reduction functions."""

    def get_initial_regions(self, red):
        """Return NumPy arrays to fill."""
        raise NotImplementedError

    def fill(self, red, regions):
        """Fill the `regions` arrays with the reduction of red.values."""
        raise NotImplementedError

    def reduce(self, red, regions):
        """Return `regions` reduced to proper output."""
        raise NotImplementedError

    def calculate(self, red):
        """Return the reduction of red.values: a NumPy scalar or array."""
        regions = self.get_initial_regions(red)
        self.fill(red, regions)
        return self.reduce(red, regions)


class rfunc_weighted(rfunc):
    """A base class for reductions which take optional weights."""

    def __init__(self, weights=None):
        if weights is not None:
            weights = numpy.asarray(weights)
        self.weights = weights

    def check_weights(self, red):
        if self.weights is not None and self.weights.shape != red.values.shape:
            raise ValueError(
                "Weights shape %s does not match array shape %s."
                % (self.weights.shape, red.values.shape)
            )

    def valid_weights(self, red):
        """Return self.weights, with 0 wherever red.values is missing."""
        return numpy.where(red.validity, self.weights, 0)


class rfunc_sum(rfunc):
    """Calculate the sum of an array, ignoring missing values.

    Missing values count as 0, so the sum of no valid values is 0, not NaN.
    """

    def get_initial_regions(self, red):
        """Return empty NumPy arrays to fill."""
        sums = numpy.zeros(red.shape, dtype=_sum_dtype(red.values))
        return (sums,)

    def fill(self, red, regions):
        """Fill the `regions` arrays with the reduction of red.values."""
        (sums,) = regions
        sums[...] = numpy.sum(
            red.masked(0), axis=red.reduce_axis, keepdims=red.keepdims
        )

    def reduce(self, red, regions):
        """Return `regions` reduced to proper output."""
        (sums,) = regions
        return red.finish(sums, red.reduce_axis)


class rfunc_mean(rfunc_weighted):
    """Calculate the (optionally weighted) mean of an array, ignoring missing values.

    If `weights` is given and not None, it must be a NumPy array of numeric
    weight values of the same shape as the array. The weighted mean is then
    sum(weights * values) / sum(weights), both sums over valid values only.

    The unweighted denominator is the count of valid values, not the length
    of the array (or axis). A group with no valid values has a NaN mean.
    """

    def get_initial_regions(self, red):
        """Return empty NumPy arrays to fill."""
        self.check_weights(red)
        # Means of rationals stay rational.
        dtype = object if red.values.dtype.kind == "O" else float
        sums = numpy.zeros(red.shape, dtype=dtype)
        if self.weights is None:
            valid_counts = numpy.zeros(red.shape, dtype=int)
        else:
            valid_counts = numpy.zeros(red.shape, dtype=dtype)
        return sums, valid_counts

    def fill(self, red, regions):
        """Fill the `regions` arrays with the reduction of red.values."""
        sums, valid_counts = regions
        axis, keepdims = red.reduce_axis, red.keepdims

        if self.weights is None:
            sums[...] = numpy.sum(red.masked(0), axis=axis, keepdims=keepdims)
            valid_counts[...] = red.valid_counts()
        else:
            weights = self.valid_weights(red)
            sums[...] = numpy.sum(
                weights * red.masked(0), axis=axis, keepdims=keepdims
            )
            valid_counts[...] = numpy.sum(weights, axis=axis, keepdims=keepdims)

    def reduce(self, red, regions):
        """Return `regions` reduced to proper output."""
        sums, valid_counts = regions
        if sums.dtype.kind == "O":
            # Python numbers raise ZeroDivisionError rather than return NaN.
            means = numpy.full(sums.shape, NaN, dtype=object)
            numpy.divide(sums, valid_counts, out=means, where=valid_counts != 0)
        else:
            with numpy.errstate(divide="ignore", invalid="ignore"):
                means = numpy.asarray(sums / valid_counts)
        return red.finish(means, red.reduce_axis)


class rfunc_stddev(rfunc_weighted):
    """Calculate the (optionally weighted) standard deviation, ignoring missing values.

    Unweighted, this is the sample standard deviation: the sum of squared
    deviations from the mean is divided by max(N - 1, 0), where N is the
    count of valid values.

    If `weights` is given and not None, it must be a NumPy array of numeric
    weight values of the same shape as the array. They are treated as
    reliability weights: the weighted sum of squared deviations from the
    weighted mean is divided by the sum of weights, then multiplied by
    N / (N - 1) where N is (again) the count of valid values, not the sum
    of their weights.

    Groups with fewer than 2 valid values divide by zero, and so return NaN
    (or inf); no warning is emitted for them.
    """

    def get_initial_regions(self, red):
        """Return empty NumPy arrays to fill."""
        self.check_weights(red)
        stddevs = numpy.full(red.shape, NaN, dtype=float)
        return (stddevs,)

    def fill(self, red, regions):
        """Fill the `regions` arrays with the reduction of red.values."""
        (stddevs,) = regions
        axis, keepdims = red.reduce_axis, red.keepdims
        values = _as_float(red.values)
        summables = _as_float(red.masked(0))
        N = red.valid_counts()

        with numpy.errstate(divide="ignore", invalid="ignore"):
            if self.weights is None:
                means = numpy.sum(summables, axis=axis, keepdims=keepdims) / N
                deviations = numpy.where(red.validity, values - means, 0)
                varsums = numpy.sum(deviations * deviations, axis=axis, keepdims=keepdims)
                stddevs[...] = numpy.sqrt(varsums / numpy.maximum(N - 1, 0))
            else:
                weights = _as_float(self.valid_weights(red))
                weightsums = numpy.sum(weights, axis=axis, keepdims=keepdims)
                means = (
                    numpy.sum(weights * summables, axis=axis, keepdims=keepdims)
                    / weightsums
                )
                deviations = numpy.where(red.validity, values - means, 0)
                varsums = numpy.sum(
                    deviations * deviations * weights, axis=axis, keepdims=keepdims
                )
                stddevs[...] = numpy.sqrt(varsums / weightsums * N / (N - 1))

    def reduce(self, red, regions):
        """Return `regions` reduced to proper output."""
        (stddevs,) = regions
        return red.finish(stddevs, red.reduce_axis)


class rfunc_op_base(rfunc):
    """Calculate self.op() of an array, ignoring missing values.

    Arrays which cannot hold missing values use `op`, and keep their dtype.
    All others use `nanop.reduce`, which returns the non-NaN argument
    of each pair it compares, seeded with NaN so that a group with no valid
    values returns NaN (rather than looking like a valid extremum).
    """

    def get_initial_regions(self, red):
        """Return empty NumPy arrays to fill."""
        if red.all_valid and red.values.size:
            output_values = numpy.empty(red.shape, dtype=red.values.dtype)
        else:
            output_values = numpy.full(red.shape, NaN, dtype=float)
        return (output_values,)

    def fill(self, red, regions):
        """Fill the `regions` arrays with the reduction of red.values."""
        (output_values,) = regions
        axis, keepdims = red.reduce_axis, red.keepdims

        if red.all_valid:
            if red.values.size:
                output_values[...] = self.op(red.values, axis=axis, keepdims=keepdims)
        else:
            output_values[...] = self.nanop.reduce(
                _as_float(red.masked(NaN)), axis=axis, keepdims=keepdims, initial=NaN
            )

    def reduce(self, red, regions):
        """Return `regions` reduced to proper output."""
        (output_values,) = regions
        return red.finish(output_values, red.reduce_axis)


class rfunc_max(rfunc_op_base):
    """Calculate the max of an array, ignoring missing values."""

    op = staticmethod(numpy.amax)
    nanop = numpy.fmax


class rfunc_min(rfunc_op_base):
    """Calculate the min of an array, ignoring missing values."""

    op = staticmethod(numpy.amin)
    nanop = numpy.fmin


class rfunc_order_base(rfunc):
    """Calculate self.statistic() of the valid values of an array (or its slices).

    Order statistics need the valid values themselves, sorted, rather than
    a running sum; so rather than reduce the whole array at once, these ask
    the reducer for one 1-D array of valid values per slice (a single one for
    the whole array) and fill one output cell from each.

    Slices are taken only from 2-D arrays along axis 0 (one per column)
    or axis 1 (one per row); any other axis means the whole array.
    A slice with no valid values has a NaN statistic.
    """

    def get_initial_regions(self, red):
        """Return empty NumPy arrays to fill."""
        stats = numpy.full(red.slice_shape, NaN, dtype=float)
        return (stats,)

    def fill(self, red, regions):
        """Fill the `regions` arrays with the reduction of red.values."""
        (stats,) = regions

        def fill_one(index, values):
            if len(values):
                stats[index] = self.statistic(values)

        red.each_slice(fill_one)

    def reduce(self, red, regions):
        """Return `regions` reduced to proper output."""
        (stats,) = regions
        return red.finish(stats, red.slice_axis)

    def statistic(self, values):
        """Return the statistic of the given (non-empty, valid) 1-D values."""
        raise NotImplementedError


class rfunc_pctile(rfunc_order_base):
    """Calculate the p'th percentile of an array, ignoring missing values.

    The `p` arg must be a number between 0 and 100 inclusive. Percentiles
    interpolate linearly between the two order statistics nearest to rank
    p/100 * (N - 1) of the N valid values.
    """

    def __init__(self, p):
        p = float(p)
        if not 0 <= p <= 100:
            raise ValueError("Percentiles must be in the range [0, 100], not %r." % p)
        self.p = p

    def statistic(self, values):
        return numpy.percentile(values, self.p)


class rfunc_median(rfunc_order_base):
    """Calculate the median of an array, ignoring missing values."""

    def statistic(self, values):
        return numpy.median(values)


class rfunc_mad(rfunc_order_base):
    """Calculate the median absolute deviation from the median, ignoring missing values.

    No scale factor is applied. For a Normal distribution, sigma = 1.4826 * MAD.
    """

    def statistic(self, values):
        return numpy.median(numpy.abs(values - numpy.median(values)))
