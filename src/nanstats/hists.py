"""Histograms over regular bins, ignoring NaNs.

Functions here come in pairs: a `fill_*` function which adds counts into
a NumPy array you provide, and a convenience function which allocates
a zeroed array of counts (of `dtype`, default int64) and fills that.

The `fill_*` functions never overwrite the counts array; they only add to it.
This means you must zero it yourself before first use, but also that you may
fill the same array several times, from several chunks (or shards) of samples,
to obtain the histogram of all of them together. Fills of the same array
must not run concurrently.

If the counts array is smaller than the number of bins, a BinCapacityWarning
is emitted, the bins which fit are filled, and the rest are dropped.

Bins are closed on the right and open on the left; see `nanstats.bins`.
"""

import warnings

import numpy

from .bins import regular_bins, regular_grid

COUNT_DTYPE = numpy.int64


class BinCapacityWarning(RuntimeWarning):
    """A counts array was too small for all bins; the extra bins were dropped."""


def _check_counts(N, ndim):
    if not isinstance(N, numpy.ndarray):
        raise TypeError("Counts must be a NumPy array to fill in place, not %r." % (N,))
    if N.ndim != ndim:
        raise ValueError("Counts must be %d-D, not %d-D." % (ndim, N.ndim))


def _capacity(available, needed, msg):
    """Return the number of bins which can be filled, warning if short."""
    if available < needed:
        warnings.warn(msg, BinCapacityWarning, stacklevel=3)
        return available
    return needed


def _add_counts(counts, offsets):
    """Add 1 to counts.flat[i] for each i in `offsets`.

    The given `counts` may be a (non-contiguous) view of a larger array;
    it is added to in place.
    """
    binned = numpy.bincount(offsets, minlength=counts.size)
    counts += binned.reshape(counts.shape).astype(counts.dtype, copy=False)


def fill_histcounts(N, x, *edges):
    """Add the histogram of `x` over the given bins to the 1-D array `N`.

    The bins may be given as a single sequence of evenly spaced edges,
    a regular_bins instance, or as three args: lower, upper, nbins.
    NaN values in `x`, and values outside (lower, upper], are not counted.
    Returns `N`.
    """
    _check_counts(N, 1)
    bins = regular_bins.coerce(*edges)

    nbins = _capacity(
        N.shape[0],
        bins.nbins,
        "len(N) < nbins; any bins beyond len(N) will not be filled",
    )

    indices = bins.indices(x, nbins)
    _add_counts(N[:nbins], indices[indices > 0] - 1)
    return N


def fill_histcountindices(N, binids, x, *edges):
    """As fill_histcounts, also setting the 1-based bin of each x into `binids`.

    The `binids` arg must be a NumPy array of the same shape as `x`. Every
    element of it is set: to the bin number which was incremented for the
    corresponding sample, or to 0 if that sample was not counted.
    Returns (N, binids).
    """
    _check_counts(N, 1)
    x = numpy.asarray(x)
    if not isinstance(binids, numpy.ndarray) or binids.shape != x.shape:
        raise ValueError("Bin indices must be a NumPy array of shape %s." % (x.shape,))
    bins = regular_bins.coerce(*edges)

    nbins = _capacity(
        N.shape[0],
        bins.nbins,
        "len(N) < nbins; any bins beyond len(N) will not be filled",
    )

    indices = bins.indices(x, nbins)
    _add_counts(N[:nbins], indices[indices > 0] - 1)
    binids[...] = indices
    return N, binids


def fill_histcounts2d(N, x, y, xedges, yedges):
    """Add the 2-D histogram of (x, y) pairs to the 2-D array `N`.

    Rows of `N` correspond to the y bins and columns to the x bins,
    with the lowest bins of both at N[0, 0]. Each of `xedges` and `yedges`
    may be a sequence of evenly spaced edges or a regular_bins instance.
    A pair is counted only if both its x and its y fall into a bin.
    Returns `N`.
    """
    _check_counts(N, 2)
    grid = regular_grid(regular_bins.coerce(xedges), regular_bins.coerce(yedges))
    nybins, nxbins = grid.shape

    nybins = _capacity(
        N.shape[0],
        nybins,
        "N.shape[0] < nybins; any y bins beyond N.shape[0] will not be filled",
    )
    nxbins = _capacity(
        N.shape[1],
        nxbins,
        "N.shape[1] < nxbins; any x bins beyond N.shape[1] will not be filled",
    )

    rows, cols = grid.coordinates(x, y, (nybins, nxbins))
    binned = rows > 0
    # Each row is nxbins wide in the (nybins, nxbins) region we add to.
    offsets = (rows[binned] - 1) * nxbins + (cols[binned] - 1)
    _add_counts(N[:nybins, :nxbins], offsets)
    return N


def histcounts(x, *edges, dtype=COUNT_DTYPE):
    """Return the histogram of `x` over the given bins, ignoring NaNs.

    The bins may be given as a single sequence of evenly spaced edges,
    such as numpy.arange(0, 11), a regular_bins instance, or as three args:
    lower, upper, nbins. For example, both of these return 10 counts:

        >>> histcounts(samples, numpy.arange(0, 11))
        >>> histcounts(samples, 0, 10, 10)
    """
    bins = regular_bins.coerce(*edges)
    return fill_histcounts(numpy.zeros(bins.nbins, dtype=dtype), x, bins)


def histcountindices(x, *edges, dtype=COUNT_DTYPE):
    """Return (counts, binids): the histogram of `x` and each x's 1-based bin.

    Samples which were not counted (NaN or out of range) have bin 0.
    """
    x = numpy.asarray(x)
    bins = regular_bins.coerce(*edges)
    return fill_histcountindices(
        numpy.zeros(bins.nbins, dtype=dtype),
        numpy.zeros(x.shape, dtype=numpy.intp),
        x,
        bins,
    )


def histcounts2d(x, y, xedges, yedges, dtype=COUNT_DTYPE):
    """Return the 2-D histogram of (x, y) pairs, ignoring NaNs.

    The output has shape (number of y bins, number of x bins).
    """
    xbins = regular_bins.coerce(xedges)
    ybins = regular_bins.coerce(yedges)
    N = numpy.zeros((ybins.nbins, xbins.nbins), dtype=dtype)
    return fill_histcounts2d(N, x, y, xbins, ybins)
