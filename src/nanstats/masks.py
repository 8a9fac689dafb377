"""Missing-value masks for nanstats.

Most functions in nanstats take one or more arguments that represent arrays
with missingness. Callers have a choice whether to send a single numeric
array, which uses NaN values to represent missing cells, or a 2-tuple of
arrays, the first with values and the second with booleans (True meaning
"valid" and False meaning "missing"). NumPy arrays of `int` have no standard
way to represent missing values, so the second form is the only way to mark
an integer cell as missing.

A NaN mask is True wherever a value is not NaN. We find it by comparing each
value to itself: NaN is the only value which is unequal to itself under
IEEE-754, and the comparison works the same for any dtype that defines `==`.
Arrays of integers (or of rationals) cannot hold NaN at all, so their mask is
always full of True; that is only a shortcut and never changes a result.
"""

import numbers

import numpy

NaN = float("nan")

EXACT = "exact"
"""Kind of array which cannot hold NaN: bools, integers, and rationals."""

FLOAT = "float"
"""Kind of array with a float (or complex) dtype."""

GENERIC = "generic"
"""Kind of object array which may hold anything, NaN included."""


def kind_of(arr):
    """Return EXACT, FLOAT, or GENERIC for the given NumPy array."""
    kind = arr.dtype.kind
    if kind in "biu":
        return EXACT
    if kind in "fc":
        return FLOAT
    if kind == "O" and all(isinstance(v, numbers.Rational) for v in arr.flat):
        return EXACT
    return GENERIC


def fill_nanmask(mask, arr):
    """Fill the given boolean `mask` with False wherever `arr` is NaN; return it."""
    arr = numpy.asarray(arr)
    if mask.shape != arr.shape:
        raise ValueError(
            "Mask shape %s does not match array shape %s." % (mask.shape, arr.shape)
        )

    kind = kind_of(arr)
    if kind == EXACT:
        mask.fill(True)
    elif kind == FLOAT:
        numpy.equal(arr, arr, out=mask)
    else:
        mask[...] = numpy.fromiter(
            (v == v for v in arr.flat), dtype=bool, count=arr.size
        ).reshape(arr.shape)
    return mask


def nanmask(arr):
    """Return a boolean array of shape arr.shape, False wherever `arr` is NaN."""
    arr = numpy.asarray(arr)
    return fill_nanmask(numpy.empty(arr.shape, dtype=bool), arr)


def as_separate_validity(arr):
    """Return (values, validity) from the given arr-or-(values, validity)-tuple.

    This function returns the 2-tuple form regardless of which form the
    caller passed, because that's more useful inside reductions. A NaN value
    is never valid, even if the caller's validity array says otherwise.
    """
    if isinstance(arr, tuple):
        arr, validity = arr
        arr = numpy.asarray(arr)
        validity = numpy.asarray(validity).astype(bool)
        if validity.shape != arr.shape:
            raise ValueError(
                "Validity shape %s does not match array shape %s."
                % (validity.shape, arr.shape)
            )
        validity &= nanmask(arr)
    else:
        arr = numpy.asarray(arr)
        validity = nanmask(arr)
    return arr, validity


def zeronan(arr):
    """Replace all NaN values in the given NumPy array with 0, in place.

    Returns the same array, for convenience.
    """
    if not isinstance(arr, numpy.ndarray):
        raise TypeError("zeronan modifies a NumPy array in place, not %r." % (arr,))
    if kind_of(arr) != EXACT:
        arr[~nanmask(arr)] = 0
    return arr


def nanadd(a, b):
    """Return a + b, treating NaN values in either one as 0."""
    a = numpy.asarray(a)
    b = numpy.asarray(b)
    result = numpy.where(nanmask(a), a, 0) + numpy.where(nanmask(b), b, 0)
    if not result.shape:
        return result[()]
    return result


def fill_nanadd(a, b):
    """Add the non-NaN values of `b` to the NumPy array `a`, in place.

    NaN values in `a` are replaced by the corresponding values of `b`
    (or 0 if both are NaN). Results are cast to a.dtype.
    """
    a[...] = nanadd(a, b)
    return a
