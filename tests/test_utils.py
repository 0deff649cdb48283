"""Tests for validation, observers, registries, logging and time series."""

import csv
import logging

import numpy as np
import pytest

from neurostream.utils.logging import MetricsLogger, create_formatters, setup_logging
from neurostream.utils.metrics import MetricsRecorder, TimeSeries
from neurostream.utils.observable import Observable
from neurostream.utils.registry import (
    DISTANCE_REGISTRY,
    LATTICE_REGISTRY,
    MODEL_REGISTRY,
    NEIGHBORHOOD_REGISTRY,
    Registry,
    create_model,
)
from neurostream.utils.validation import (
    DimensionalityMismatchError,
    InvalidArgumentError,
    require_dimensionality,
    require_in_range,
    require_matrix,
    require_non_negative,
    require_positive,
)


class TestValidation:
    def test_dimensionality_mismatch_message(self):
        with pytest.raises(DimensionalityMismatchError, match="expected 3 got 2"):
            require_dimensionality([1.0, 2.0], 3)

    def test_errors_are_value_errors(self):
        assert issubclass(DimensionalityMismatchError, ValueError)
        assert issubclass(InvalidArgumentError, ValueError)

    def test_dimensionality_returns_float_array(self):
        array = require_dimensionality([1, 2], 2)
        assert array.dtype == np.float64

    def test_rejects_matrix_as_vector(self):
        with pytest.raises(InvalidArgumentError):
            require_dimensionality(np.zeros((2, 2)), 2)

    def test_numeric_ranges(self):
        assert require_non_negative(0, "n") == 0
        with pytest.raises(InvalidArgumentError):
            require_non_negative(-1, "n")
        with pytest.raises(InvalidArgumentError):
            require_positive(0.0, "p")
        with pytest.raises(InvalidArgumentError):
            require_in_range(1.5, "r", 0.0, 1.0)

    def test_matrix(self):
        assert require_matrix([0.5, 0.5], 2).shape == (1, 2)
        with pytest.raises(InvalidArgumentError):
            require_matrix(np.empty((0, 2)), 2)
        with pytest.raises(DimensionalityMismatchError):
            require_matrix(np.zeros((4, 3)), 2)


class TestObservable:
    def test_notifies_in_registration_order(self):
        subject = Observable()
        calls = []
        first = lambda source: calls.append(("first", source))
        second = lambda source: calls.append(("second", source))
        subject.add_observer(first)
        subject.add_observer(second)

        subject.notify_observers()

        assert calls == [("first", subject), ("second", subject)]

    def test_duplicates_ignored_and_removal(self):
        subject = Observable()
        calls = []
        observer = lambda source: calls.append(source)
        subject.add_observer(observer)
        subject.add_observer(observer)
        assert subject.observer_count == 1

        subject.remove_observer(observer)
        subject.notify_observers()
        assert calls == []

    def test_none_rejected(self):
        with pytest.raises(InvalidArgumentError):
            Observable().add_observer(None)


class TestRegistry:
    def test_register_and_create(self):
        registry = Registry("test")

        @registry.register("thing")
        class Thing:
            def __init__(self, value=1):
                self.value = value

        assert "thing" in registry
        assert registry.create("thing", value=3).value == 3
        assert registry.list_available() == ["thing"]
        assert len(registry) == 1

    def test_unknown_name_lists_available(self):
        registry = Registry("test")
        registry.register("known", object)
        with pytest.raises(KeyError, match="known"):
            registry.get("missing")

    def test_builtin_registries_populated(self):
        import neurostream  # noqa: F401

        assert {"rectangular", "hexagonal", "torus-rectangular", "torus-hexagonal"} <= set(LATTICE_REGISTRY)
        assert {"euclidean", "cosine"} <= set(DISTANCE_REGISTRY)
        assert {"gaussian", "bubble", "pyramid"} <= set(NEIGHBORHOOD_REGISTRY)
        assert {"basic", "ubisom", "plsom", "dsom"} <= set(MODEL_REGISTRY)

    def test_create_model(self):
        import neurostream  # noqa: F401

        som = create_model("basic", 3, 2, 2, seed=0)
        assert som.size == 6


class TestLogging:
    def test_formatters(self):
        for format_type in ("simple", "detailed"):
            formatters = create_formatters(format_type)
            assert set(formatters) == {"console", "file"}

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            create_formatters("xml")

    def test_file_handlers(self, tmp_path):
        setup_logging(level="DEBUG", log_dir=tmp_path, experiment_name="run", console_output=False)
        logging.getLogger("neurostream.test").error("boom")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "boom" in (tmp_path / "run.log").read_text()
        assert "boom" in (tmp_path / "run_error.log").read_text()
        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()

    def test_metrics_logger(self, tmp_path):
        path = tmp_path / "metrics.csv"
        metrics_logger = MetricsLogger(path)
        metrics_logger.log_metrics_dict(5, {"drift": 0.25, "phase": "ordering"})

        rows = list(csv.reader(path.open()))
        assert rows[0] == ["timestamp", "step", "metric_name", "metric_value"]
        assert rows[1][1:] == ["5", "drift", "0.25"]
        assert metrics_logger.get_metric_history("drift") == [(5, 0.25)]
        assert metrics_logger.get_metric_history("phase") == []

    def test_metrics_logger_appends_to_existing_file(self, tmp_path):
        path = tmp_path / "metrics.csv"
        MetricsLogger(path).log_metric(1, "quantization_error", np.float64(0.5))
        MetricsLogger(path).log_metrics_dict(2, {"activity": 1, "converged": True})

        rows = list(csv.reader(path.open()))
        assert rows[0] == ["timestamp", "step", "metric_name", "metric_value"]
        assert [row[1:] for row in rows[1:]] == [
            ["1", "quantization_error", "0.5"],
            ["2", "activity", "1.0"],
        ]


class TestTimeSeries:
    def test_append_and_export(self, tmp_path):
        series = TimeSeries("qe")
        series.append(1, 0.5)
        series.append(2, 0.25)

        np.testing.assert_array_equal(series.times(), [1, 2])
        np.testing.assert_allclose(series.values(), [0.5, 0.25])
        assert series.last() == (2, 0.25)

        path = tmp_path / "qe.csv"
        series.to_csv(path)
        rows = list(csv.reader(path.open()))
        assert rows == [["time", "qe"], ["1", "0.5"], ["2", "0.25"]]

    def test_recorder(self):
        class Source:
            step_count = 7
            current_drift = 0.3
            current_activity = 0.9
            current_quantization_error = 0.1

        recorder = MetricsRecorder()
        recorder(Source())

        assert recorder.drift.last() == (7, 0.3)
        assert recorder.activity.last() == (7, 0.9)
        assert recorder.quantization_error.last() == (7, 0.1)
