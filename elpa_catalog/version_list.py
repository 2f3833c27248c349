"""Emacs version list comparison.

A version list is the integer form Emacs gives to version strings: "1.2" is
``[1, 2]`` and pre-releases use negative elements, so "1.2snapshot" becomes
``[1, 2, -4]``. From the Emacs manual:

    Note that a version specified by the list (1) is equal to (1 0), (1 0 0),
    (1 0 0 0), etc. That is, the trailing zeros are insignificant. Also, a
    version given by the list (1) is higher than (1 -1), which in turn is
    higher than (1 -2), which is higher than (1 -3).
"""

from typing import Sequence


def version_list_not_zero(lst: Sequence[int]) -> int:
    """Return the first non-zero element of `lst`, or 0 if there is none."""
    return next((elem for elem in lst if elem != 0), 0)


def _strip_common_prefix(
    a: Sequence[int], b: Sequence[int]
) -> tuple[Sequence[int], Sequence[int]]:
    i = 0
    while i < len(a) and i < len(b) and a[i] == b[i]:
        i += 1
    return a[i:], b[i:]


def version_list_less_than(a: Sequence[int], b: Sequence[int]) -> bool:
    """Return True if version list `a` is lower than `b`."""
    a, b = _strip_common_prefix(a, b)
    if a and b:
        return a[0] < b[0]
    if not a and not b:
        return False
    # a is longer than b: a is lower only if what remains is negative
    if a:
        return version_list_not_zero(a) < 0
    return version_list_not_zero(b) > 0


def version_list_equal(a: Sequence[int], b: Sequence[int]) -> bool:
    """Return True if `a` and `b` differ at most by trailing zeros."""
    a, b = _strip_common_prefix(a, b)
    if a and b:
        return False
    return version_list_not_zero(a or b) == 0


def compare_version_lists(a: Sequence[int], b: Sequence[int]) -> int:
    """Three-way comparison, usable with :func:`functools.cmp_to_key`."""
    if version_list_less_than(a, b):
        return -1
    if version_list_equal(a, b):
        return 0
    return 1


def format_version(lst: Sequence[int]) -> str:
    return ".".join(str(elem) for elem in lst)
