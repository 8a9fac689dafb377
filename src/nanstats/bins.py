"""Regular (equally spaced) bins for histograms.

Because every bin has the same width, finding the bin for a value needs
no search; it is a single affine operation on the value:

    position = (value - lower) * (nbins / (upper - lower))

The bin is then ceil(position), counting from 1, for any position in the
half-open interval (0, nbins]. Each bin is therefore closed on the right and
open on the left: (lo, hi]. Note that a value exactly equal to the lowest
edge has position 0, and falls into no bin at all.

NaN values have a NaN position, which fails both comparisons, so they are
excluded along exactly the same path as values which are out of range.
"""

import math
import numbers

import numpy

EVEN_RTOL = 1e-6
"""Relative tolerance allowed between each bin width and the nominal width."""


class regular_bins:
    """A range from `lower` to `upper`, split into `nbins` bins of equal width.

    Use `regular_bins.from_edges` to build one from a sequence of edges, such
    as numpy.arange(0, 11) or numpy.linspace(0, 1, 21), or `coerce` to accept
    whatever form a caller passed.
    """

    def __init__(self, lower, upper, nbins):
        if isinstance(nbins, bool) or not isinstance(nbins, numbers.Integral):
            raise TypeError("Number of bins must be an integer, not %r." % (nbins,))
        if nbins < 1:
            raise ValueError("Number of bins must be at least 1, not %d." % nbins)
        if not (math.isfinite(lower) and math.isfinite(upper)):
            raise ValueError("Bin range [%s, %s] is not finite." % (lower, upper))
        if not lower < upper:
            raise ValueError("Bin range [%s, %s] is empty." % (lower, upper))

        self.lower = lower
        self.upper = upper
        self.nbins = int(nbins)
        self.scale = self.nbins / (upper - lower)

    def __repr__(self):
        return "%s(%r, %r, %r)" % (
            self.__class__.__name__,
            self.lower,
            self.upper,
            self.nbins,
        )

    @classmethod
    def from_edges(cls, edges):
        """Return a regular_bins instance from the given (evenly spaced) edges."""
        edges = numpy.asarray(edges, dtype=float)
        if edges.ndim != 1 or edges.shape[0] < 2:
            raise ValueError("Bin edges must be a 1-D sequence of at least 2 values.")

        widths = numpy.diff(edges)
        if not (widths > 0).all():
            raise ValueError("Bin edges must be strictly increasing.")

        nbins = edges.shape[0] - 1
        lower, upper = float(edges[0]), float(edges[-1])
        if not numpy.allclose(widths, (upper - lower) / nbins, rtol=EVEN_RTOL, atol=0):
            raise ValueError("Bin edges must be evenly spaced.")

        return cls(lower, upper, nbins)

    @classmethod
    def coerce(cls, *args):
        """Return a regular_bins from (edges,), (regular_bins,) or (lower, upper, nbins)."""
        if len(args) == 1:
            (edges,) = args
            if isinstance(edges, cls):
                return edges
            return cls.from_edges(edges)
        elif len(args) == 3:
            return cls(*args)

        raise TypeError(
            "Expected bin edges, or lower, upper and nbins; got %d arguments."
            % len(args)
        )

    @property
    def edges(self):
        """The nbins + 1 edges of these bins, as a NumPy array."""
        return numpy.linspace(self.lower, self.upper, self.nbins + 1)

    def positions(self, values):
        """Return the fractional bin position of each of the given values."""
        return (numpy.asarray(values, dtype=float) - self.lower) * self.scale

    def indices(self, values, nbins=None):
        """Return the 1-based bin index of each value, or 0 if it has none.

        If `nbins` is given, only that many bins are considered; values in
        any later bin get 0 as if they were out of range.
        """
        if nbins is None:
            nbins = self.nbins

        positions = self.positions(values)
        valid = (positions > 0) & (positions <= nbins)
        indices = numpy.zeros(positions.shape, dtype=numpy.intp)
        indices[valid] = numpy.ceil(positions[valid])
        return indices


class regular_grid:
    """A 2-D grid of regular bins: `xbins` across columns, `ybins` down rows.

    Grid cells are addressed (row, col), so a grid of counts has shape
    (ybins.nbins, xbins.nbins), with the lowest x and y bins at [0, 0].
    """

    def __init__(self, xbins, ybins):
        self.xbins = xbins
        self.ybins = ybins

    def __repr__(self):
        return "%s(%r, %r)" % (self.__class__.__name__, self.xbins, self.ybins)

    @property
    def shape(self):
        return (self.ybins.nbins, self.xbins.nbins)

    def coordinates(self, x, y, shape=None):
        """Return 1-based (rows, cols) arrays for the given (x, y) samples.

        A sample outside the grid along either axis gets 0 for both its
        row and its col. If `shape` is given, it limits the number of
        (rows, cols) considered, as `regular_bins.indices` does for `nbins`.
        """
        x = numpy.asarray(x)
        y = numpy.asarray(y)
        if x.shape != y.shape:
            raise ValueError(
                "x shape %s does not match y shape %s." % (x.shape, y.shape)
            )

        nrows, ncols = self.shape if shape is None else shape
        rows = self.ybins.indices(y, nrows)
        cols = self.xbins.indices(x, ncols)

        outside = (rows == 0) | (cols == 0)
        rows[outside] = 0
        cols[outside] = 0
        return rows, cols
