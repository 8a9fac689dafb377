from nanstats import reducers, rfuncs

from . import UnitBenchmark


class Test_reducer_whole(UnitBenchmark):
    def _reducer_whole(self, funcname, func, arr, threshold_ms=None):
        red = reducers.reducer(arr)
        with self.bench("reducer.whole.%s" % funcname, threshold_ms):
            red.calculate([func])

    def test_reducer_whole_sum(self):
        self._reducer_whole("sum", rfuncs.rfunc_sum(), self.numeric(), 20)

    def test_reducer_whole_sum_ints(self):
        self._reducer_whole("sum.ints", rfuncs.rfunc_sum(), self.integers(), 20)

    def test_reducer_whole_mean(self):
        self._reducer_whole("mean", rfuncs.rfunc_mean(), self.numeric(), 25)

    def test_reducer_whole_mean_wt(self):
        W = self.numeric()
        self._reducer_whole(
            "mean.wt", rfuncs.rfunc_mean(weights=W), self.numeric(), 40
        )

    def test_reducer_whole_stddev(self):
        self._reducer_whole("stddev", rfuncs.rfunc_stddev(), self.numeric(), 60)

    def test_reducer_whole_max(self):
        self._reducer_whole("max", rfuncs.rfunc_max(), self.numeric(), 20)

    def test_reducer_whole_median(self):
        self._reducer_whole("median", rfuncs.rfunc_median(), self.numeric(), 60)


class Test_reducer_axis(UnitBenchmark):
    def _reducer_axis(self, funcname, func, axis, threshold_ms=None):
        self.params.rows = 100000
        red = reducers.reducer(self.numeric(columns=True), axis=axis)
        with self.bench("reducer.axis%d.%s" % (axis, funcname), threshold_ms):
            red.calculate([func])

    def test_reducer_axis0_mean(self):
        self._reducer_axis("mean", rfuncs.rfunc_mean(), 0, 150)

    def test_reducer_axis1_mean(self):
        self._reducer_axis("mean", rfuncs.rfunc_mean(), 1, 150)

    def test_reducer_axis0_median(self):
        self._reducer_axis("median", rfuncs.rfunc_median(), 0, 600)

    def test_reducer_axis1_median(self):
        # One slice per row: many short slices.
        self._reducer_axis("median", rfuncs.rfunc_median(), 1, 3000)
