"""Tests for the running-mean filters."""

import pytest

from neurostream.utils.filters import SimpleRunningMeanFilter, TripleCascadedMeanFilter
from neurostream.utils.validation import InvalidArgumentError


class TestSimpleRunningMeanFilter:
    def test_partial_then_full_window(self):
        f = SimpleRunningMeanFilter("test", 3)

        assert f.last_output() == 0.0
        assert f.filter(1.0) == pytest.approx(1.0)
        assert f.filter(2.0) == pytest.approx(1.5)
        assert f.filter(3.0) == pytest.approx(2.0)
        assert f.filter(4.0) == pytest.approx(3.0)
        assert f.last_output() == pytest.approx(3.0)
        assert f.count == 3

    def test_constant_input_converges(self):
        f = SimpleRunningMeanFilter("constant", 25)
        for _ in range(100):
            f.filter(0.42)
        assert f.last_output() == pytest.approx(0.42)

    def test_reset(self):
        f = SimpleRunningMeanFilter("reset", 4)
        f.filter(10.0)
        f.reset()

        assert f.last_output() == 0.0
        assert f.filter(2.0) == pytest.approx(2.0)

    def test_window_size_validated(self):
        with pytest.raises(InvalidArgumentError):
            SimpleRunningMeanFilter("bad", 0)


class TestTripleCascadedMeanFilter:
    def test_cascade_window_sizes(self):
        assert TripleCascadedMeanFilter.cascade_window_sizes(100) == [40, 33, 27]

    def test_small_windows_clamped(self):
        assert TripleCascadedMeanFilter.cascade_window_sizes(1) == [1, 1, 1]

    def test_constant_input_converges(self):
        f = TripleCascadedMeanFilter("constant", 100)
        for _ in range(500):
            f.filter(0.7)
        assert f.last_output() == pytest.approx(0.7)

    def test_smooths_step(self):
        f = TripleCascadedMeanFilter("step", 100)
        for _ in range(200):
            f.filter(0.0)
        out = f.filter(1.0)

        assert 0.0 < out < 0.1

    def test_reset(self):
        f = TripleCascadedMeanFilter("reset", 10)
        for _ in range(20):
            f.filter(3.0)
        f.reset()
        assert f.last_output() == 0.0
