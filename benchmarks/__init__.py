"""Benchmarks for nanstats, run via py.test like the tests.

Reductions and histograms usually see millions of samples per call, often
chunk after chunk of a larger dataset. Keep each benchmark to one call on
one code path (whole array vs. along an axis, NaN floats vs. integers with
a validity array), sized by the defaults in BenchmarkParameters.
"""

import gc
import time
import unittest
from contextlib import contextmanager

import numpy
import pytest


class BenchmarkParameters(dict):
    """Array sizes for one benchmark, reported alongside its timing.

    A default is recorded only once it is read, so a 1-D histogram
    benchmark never reports a `columns` it did not use.
    """

    _defaults = {
        "rows": 1000000,
        "columns": 100,
        "bins": 1000,
        "missing": 0.1,
    }

    def __getattr__(self, key):
        if key in self:
            return self[key]
        elif key in self._defaults:
            self[key] = self._defaults[key]
            return self[key]

        raise AttributeError(
            "'BenchmarkParameters' object has no attribute '%s'" % (key,)
        )

    def __setattr__(self, key, value):
        self[key] = value


class UnitBenchmark(unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.params = BenchmarkParameters()

    def tearDown(self):
        self.params = None
        super().tearDown()

    @contextmanager
    def bench(self, name, threshold_ms=None):
        """Time the wrapped block and print it with the params in use.

        If the block takes longer than `threshold_ms` milliseconds,
        the test xfails. Lower thresholds as the code gets faster;
        do not raise them.
        """
        gc.collect()

        start = time.perf_counter()
        yield
        diff_s = time.perf_counter() - start

        paramstr = "\t".join("%s=%s" % (k, v) for k, v in sorted(self.params.items()))
        print("\n%10.6f" % diff_s, name, paramstr)

        if threshold_ms is not None and diff_s * 1000 > threshold_ms:
            pytest.xfail(
                "Benchmark %r time %.3fms > threshold %.3fms"
                % (name, diff_s * 1000, threshold_ms)
            )

    def numeric(self, columns=False):
        """Return floats in [0, 1), `missing` of them replaced by NaN."""
        shape = (self.params.rows,)
        if columns:
            shape = shape + (self.params.columns,)
        arr = ((numpy.arange(numpy.prod(shape)) % 100) / 100.0).reshape(shape)
        arr.flat[:: int(round(1 / self.params.missing))] = numpy.nan
        return arr

    def integers(self):
        """Return a (values, validity) tuple of ints, `missing` of them invalid."""
        values = numpy.arange(self.params.rows) % 1000
        validity = numpy.ones(values.shape, dtype=bool)
        validity[:: int(round(1 / self.params.missing))] = False
        return values, validity
