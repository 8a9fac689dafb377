import warnings

import numpy
import pytest

from nanstats import (
    BinCapacityWarning,
    fill_histcountindices,
    fill_histcounts,
    fill_histcounts2d,
    histcountindices,
    histcounts,
    histcounts2d,
    regular_bins,
)

NaN = float("nan")
edges = numpy.arange(11)


class TestHistCounts:
    def test_counts(self):
        counts = histcounts([0.5, 1.5, 2.5, 9.9], edges)
        assert counts.tolist() == [1, 1, 1, 0, 0, 0, 0, 0, 0, 1]
        assert counts.dtype == numpy.int64

    def test_bin_forms_agree(self):
        x = [0.5, 1.5, 2.5, 9.9]
        expected = histcounts(x, edges).tolist()
        assert histcounts(x, 0, 10, 10).tolist() == expected
        assert histcounts(x, regular_bins(0, 10, 10)).tolist() == expected

    def test_lower_edge_is_excluded(self):
        counts = histcounts([0.0, 5.0], edges)
        assert counts.tolist() == [0, 0, 0, 0, 1, 0, 0, 0, 0, 0]

    def test_upper_edge_is_included(self):
        counts = histcounts([10.0, 10.000001], edges)
        assert counts.tolist() == [0] * 9 + [1]

    def test_nan_and_out_of_range_are_ignored(self):
        counts = histcounts([NaN, -1.0, 11.0, 3.5, NaN], edges)
        assert counts.sum() == 1
        assert counts[3] == 1

    def test_dtype(self):
        counts = histcounts([0.5, 0.6], edges, dtype=numpy.float32)
        assert counts.dtype == numpy.float32
        assert counts[0] == 2.0

    def test_matches_numpy_histogram(self):
        x = numpy.random.default_rng(0).uniform(-2, 12, size=1000)
        x[::7] = NaN
        expected, _ = numpy.histogram(x[~numpy.isnan(x)], bins=edges)
        assert histcounts(x, edges).tolist() == expected.tolist()

    def test_total(self):
        x = numpy.arange(-1.0, 11.5, 0.5)
        counts = histcounts(x, edges)
        assert counts.sum() == numpy.count_nonzero((x > 0) & (x <= 10))

    @pytest.mark.parametrize(
        "bad_edges",
        [[0.0, 1.0, 3.0], [2.0, 1.0, 0.0], [1.0], [0.0, 0.0]],
    )
    def test_bad_edges(self, bad_edges):
        with pytest.raises(ValueError):
            histcounts([0.5], bad_edges)


class TestFillHistCounts:
    def test_returns_counts(self):
        N = numpy.zeros(10, dtype=int)
        assert fill_histcounts(N, [0.5], edges) is N

    def test_cumulative(self):
        x = [0.5, 1.5, 2.5, 9.9]
        N = numpy.zeros(10, dtype=int)
        fill_histcounts(N, x, edges)
        fill_histcounts(N, x, edges)
        assert N.tolist() == [2, 2, 2, 0, 0, 0, 0, 0, 0, 2]

    def test_chunks_add_up(self):
        x = numpy.random.default_rng(1).uniform(0, 10, size=300)
        N = numpy.zeros(10, dtype=int)
        for chunk in numpy.array_split(x, 7):
            fill_histcounts(N, chunk, 0, 10, 10)
        assert N.tolist() == histcounts(x, 0, 10, 10).tolist()

    def test_keeps_dtype(self):
        N = numpy.zeros(10, dtype=numpy.uint16)
        fill_histcounts(N, [0.5, 0.5, 3.5], edges)
        assert N.dtype == numpy.uint16
        assert N[0] == 2
        assert N[3] == 1

    def test_capacity(self):
        N = numpy.zeros(5, dtype=int)
        with pytest.warns(BinCapacityWarning, match="len\\(N\\) < nbins"):
            fill_histcounts(N, [0.5, 7.5], edges)
        assert N.tolist() == [1, 0, 0, 0, 0]

    def test_extra_capacity_is_untouched(self):
        N = numpy.zeros(12, dtype=int)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            fill_histcounts(N, [9.5, 10.0], edges)
        assert N.tolist() == [0] * 9 + [2, 0, 0]

    def test_counts_must_be_array(self):
        with pytest.raises(TypeError):
            fill_histcounts([0] * 10, [0.5], edges)

    def test_counts_must_be_1d(self):
        with pytest.raises(ValueError):
            fill_histcounts(numpy.zeros((10, 1)), [0.5], edges)


class TestHistCountIndices:
    def test_indices(self):
        x = [0.5, NaN, 10.0, 11.0, 0.0, 3.2]
        counts, binids = histcountindices(x, edges)
        assert binids.tolist() == [1, 0, 10, 0, 0, 4]
        assert counts.tolist() == [1, 0, 0, 1, 0, 0, 0, 0, 0, 1]
        assert counts.sum() == 3

    def test_triple(self):
        counts, binids = histcountindices([0.5, 3.2], 0, 10, 10)
        assert binids.tolist() == [1, 4]

    def test_fill(self):
        x = numpy.array([[0.5, 1.5], [NaN, 9.5]])
        N = numpy.zeros(10, dtype=int)
        binids = numpy.full(x.shape, -1)
        result = fill_histcountindices(N, binids, x, edges)
        assert result[0] is N
        assert result[1] is binids
        # Every bin id is set, including those for samples which were not counted.
        assert binids.tolist() == [[1, 2], [0, 10]]
        assert N.sum() == 3

    def test_capacity(self):
        N = numpy.zeros(5, dtype=int)
        binids = numpy.zeros(2, dtype=int)
        with pytest.warns(BinCapacityWarning):
            fill_histcountindices(N, binids, [0.5, 7.5], edges)
        assert N.tolist() == [1, 0, 0, 0, 0]
        assert binids.tolist() == [1, 0]

    def test_binids_shape(self):
        with pytest.raises(ValueError):
            fill_histcountindices(
                numpy.zeros(10, dtype=int), numpy.zeros(3, dtype=int), [0.5], edges
            )


class TestHistCounts2d:
    def test_diagonal(self):
        x = numpy.arange(0.5, 10.0)
        counts = histcounts2d(x, x, edges, edges)
        assert counts.tolist() == numpy.eye(10, dtype=int).tolist()

    def test_rows_are_y(self):
        counts = histcounts2d([0.5], [2.5], numpy.arange(3), numpy.arange(4))
        assert counts.shape == (3, 2)
        assert counts[2, 0] == 1
        assert counts.sum() == 1

    def test_pairs_need_both(self):
        x = [0.5, NaN, 0.5, 20.0]
        y = [0.5, 0.5, NaN, 0.5]
        counts = histcounts2d(x, y, edges, edges)
        assert counts.sum() == 1
        assert counts[0, 0] == 1

    def test_regular_bins(self):
        x = [0.25, 0.75]
        y = [3.0, 1.0]
        counts = histcounts2d(x, y, regular_bins(0, 1, 2), regular_bins(0, 3, 3))
        assert counts.tolist() == [[0, 1], [0, 0], [1, 0]]

    def test_matches_numpy_histogram2d(self):
        rng = numpy.random.default_rng(2)
        x = rng.uniform(-1, 11, size=500)
        y = rng.uniform(-1, 11, size=500)
        y[::9] = NaN
        valid = ~numpy.isnan(y)
        expected, _, _ = numpy.histogram2d(y[valid], x[valid], bins=[edges, edges])
        assert histcounts2d(x, y, edges, edges).tolist() == expected.astype(int).tolist()

    def test_cumulative(self):
        N = numpy.zeros((10, 10), dtype=int)
        fill_histcounts2d(N, [0.5], [9.5], edges, edges)
        fill_histcounts2d(N, [0.5], [9.5], edges, edges)
        assert N[9, 0] == 2
        assert N.sum() == 2

    def test_capacity(self):
        N = numpy.zeros((2, 3), dtype=int)
        with pytest.warns(BinCapacityWarning, match="nybins"):
            fill_histcounts2d(N, [0.5, 2.5], [0.5, 2.5], edges[:4], edges[:4])
        assert N.tolist() == [[1, 0, 0], [0, 0, 0]]

        N = numpy.zeros((3, 2), dtype=int)
        with pytest.warns(BinCapacityWarning, match="nxbins"):
            fill_histcounts2d(N, [0.5, 2.5, 1.5], [0.5, 2.5, 2.5], edges[:4], edges[:4])
        assert N.tolist() == [[1, 0], [0, 0], [0, 1]]

    def test_extra_capacity_is_untouched(self):
        N = numpy.zeros((4, 4), dtype=int)
        fill_histcounts2d(N, [0.5, 1.5], [1.5, 2.5], edges[:3], edges[:4])
        assert N.tolist() == [[0, 0, 0, 0], [1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 0, 0]]

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            histcounts2d([0.5, 1.5], [0.5], edges, edges)

    def test_counts_must_be_2d(self):
        with pytest.raises(ValueError):
            fill_histcounts2d(numpy.zeros(10), [0.5], [0.5], edges, edges)
