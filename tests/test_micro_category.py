"""Tests for micro-categories."""

import numpy as np
import pytest

from neurostream.core.micro_category import (
    MicroCategory,
    maximum_weight_among,
    merge_categories,
)
from neurostream.utils.validation import InvalidArgumentError


class TestMicroCategory:
    def test_prototype_is_owned(self):
        source = np.array([0.1, 0.2])
        category = MicroCategory(source, timestamp=3)
        source[0] = 9.0

        assert category.prototype[0] == pytest.approx(0.1)
        assert category.weight == 1
        assert category.timestamp == 3
        assert category.vigilance_radius == 1.0

    def test_none_prototype_rejected(self):
        with pytest.raises(InvalidArgumentError):
            MicroCategory(None)

    def test_copy_is_deep(self):
        category = MicroCategory(np.array([1.0, 2.0]), timestamp=5, weight=4)
        clone = category.copy()
        clone.prototype[0] = -1.0
        clone.increment_weight()

        assert category.prototype[0] == 1.0
        assert category.weight == 4
        assert clone.weight == 5

    def test_equality_by_value(self):
        a = MicroCategory(np.array([1.0, 2.0]), timestamp=5, weight=2)
        b = MicroCategory(np.array([1.0, 2.0]), timestamp=5, weight=2)
        c = MicroCategory(np.array([1.0, 2.5]), timestamp=5, weight=2)

        assert a == b
        assert a != c

    def test_dict_round_trip(self):
        category = MicroCategory(np.array([0.5, 0.25]), timestamp=7, weight=3, vigilance_radius=0.9)
        restored = MicroCategory.from_dict(category.to_dict())

        assert restored == category


class TestMerge:
    def test_weighted_merge(self):
        first = MicroCategory(np.array([0.0, 0.0]), timestamp=1, weight=3)
        second = MicroCategory(np.array([4.0, 0.0]), timestamp=2, weight=1)

        merged = merge_categories(first, second, timestamp=10)

        np.testing.assert_allclose(merged.prototype, [1.0, 0.0])
        assert merged.weight == 4
        assert merged.timestamp == 10

    def test_inputs_untouched(self):
        first = MicroCategory(np.array([0.0, 0.0]), weight=3)
        second = MicroCategory(np.array([4.0, 0.0]), weight=1)
        merge_categories(first, second, timestamp=1)

        np.testing.assert_array_equal(first.prototype, [0.0, 0.0])
        np.testing.assert_array_equal(second.prototype, [4.0, 0.0])
        assert first.weight == 3 and second.weight == 1


class TestMaximumWeight:
    def test_largest_weight(self):
        categories = [
            MicroCategory(np.zeros(2), weight=w) for w in (2, 7, 3)
        ]
        assert maximum_weight_among(categories) == 7

    def test_empty(self):
        assert maximum_weight_among([]) == -1
