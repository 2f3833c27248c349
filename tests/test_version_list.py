"""Tests for elpa_catalog.version_list."""

from functools import cmp_to_key
from itertools import product

import pytest

from elpa_catalog.version_list import (
    compare_version_lists,
    format_version,
    version_list_equal,
    version_list_less_than,
    version_list_not_zero,
)

SAMPLES = [[], [0], [1], [1, 0], [1, 0, 0], [1, -1], [1, -2], [1, 2], [1, 10], [2], [0, 0, -1]]


class TestNotZero:
    def test_first_non_zero(self) -> None:
        assert version_list_not_zero([0, 0, -3, 4]) == -3

    def test_all_zeros_or_empty(self) -> None:
        assert version_list_not_zero([0, 0]) == 0
        assert version_list_not_zero([]) == 0


class TestEquality:
    @pytest.mark.parametrize("a, b", [([1], [1, 0]), ([1], [1, 0, 0]), ([], [0, 0]), ([1, 2], [1, 2])])
    def test_trailing_zeros_are_insignificant(self, a, b) -> None:
        assert version_list_equal(a, b)
        assert version_list_equal(b, a)
        assert not version_list_less_than(a, b)
        assert not version_list_less_than(b, a)

    def test_different_lists(self) -> None:
        assert not version_list_equal([1, 2], [1, 3])
        assert not version_list_equal([1], [1, -1])


class TestLessThan:
    def test_negative_elements_are_pre_releases(self) -> None:
        assert version_list_less_than([1, -1], [1])
        assert version_list_less_than([1, -2], [1, -1])
        assert not version_list_less_than([1], [1, -1])

    def test_longer_positive_list_is_higher(self) -> None:
        assert version_list_less_than([1], [1, 0, 1])
        assert not version_list_less_than([1, 0, 1], [1])

    def test_numeric_not_lexicographic(self) -> None:
        assert version_list_less_than([1, 2], [1, 10])

    def test_empty_list_is_lowest_non_negative(self) -> None:
        assert version_list_less_than([], [0, 1])
        assert version_list_equal([], [0, 0])
        assert version_list_less_than([0, -1], [])


def test_exactly_one_relation_holds() -> None:
    for a, b in product(SAMPLES, repeat=2):
        relations = [
            version_list_less_than(a, b),
            version_list_equal(a, b),
            version_list_less_than(b, a),
        ]
        assert relations.count(True) == 1, (a, b)


def test_compare_sorts_like_emacs() -> None:
    ordered = sorted([[2], [1, 10], [1, -1], [1], [1, 2], [1, -2]], key=cmp_to_key(compare_version_lists))
    assert ordered == [[1, -2], [1, -1], [1], [1, 2], [1, 10], [2]]


def test_format_version() -> None:
    assert format_version([20240101, 1200]) == "20240101.1200"
    assert format_version([]) == ""
