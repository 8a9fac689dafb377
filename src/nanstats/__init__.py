from .bins import regular_bins, regular_grid
from .hists import (
    BinCapacityWarning,
    fill_histcountindices,
    fill_histcounts,
    fill_histcounts2d,
    histcountindices,
    histcounts,
    histcounts2d,
)
from .masks import (
    as_separate_validity,
    fill_nanadd,
    fill_nanmask,
    nanadd,
    nanmask,
    zeronan,
)
from .reducers import (
    inpctile,
    nanaad,
    nanextrema,
    nanmad,
    nanmax,
    nanmaximum,
    nanmean,
    nanmedian,
    nanmin,
    nanminimum,
    nanpctile,
    nanrange,
    nanstd,
    nansum,
    reducer,
)
from .windows import movmean
