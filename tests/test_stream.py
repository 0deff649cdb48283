"""Tests for data loading and the threaded stream runner."""

import numpy as np
import pytest

from neurostream.data.stream import StreamRunner, iter_vectors, load_vectors, normalize
from neurostream.utils.validation import DimensionalityMismatchError, InvalidArgumentError


class RecordingModel:
    def __init__(self):
        self.seen = []

    def learn(self, x):
        self.seen.append(x)


class TestLoading:
    def test_load_vectors(self, csv_file):
        data = load_vectors(csv_file)
        assert data.shape == (200, 2)
        assert data.dtype == np.float64

    def test_header(self, tmp_path):
        path = tmp_path / "with_header.csv"
        path.write_text("a,b\n1,2\n3,4\n")

        np.testing.assert_array_equal(load_vectors(path, has_header=True), [[1.0, 2.0], [3.0, 4.0]])

    def test_non_numeric_rejected(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("1,x\n2,3\n")

        with pytest.raises(InvalidArgumentError):
            load_vectors(path)

    def test_empty_rejected(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")

        with pytest.raises(InvalidArgumentError):
            load_vectors(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_vectors(tmp_path / "missing.csv")

    def test_normalize(self):
        data = np.array([[0.0, 10.0], [5.0, 20.0], [10.0, 30.0]])
        np.testing.assert_allclose(normalize(data), [[0.0, 0.0], [0.5, 0.5], [1.0, 1.0]])

    def test_iter_vectors_yields_copies(self):
        data = np.zeros((2, 2))
        rows = list(iter_vectors(data))
        rows[0][0] = 1.0
        assert data[0, 0] == 0.0


class TestStreamRunner:
    def test_processes_in_order(self, unit_square_data):
        model = RecordingModel()
        processed = StreamRunner(model, maxsize=4).run(iter_vectors(unit_square_data))

        assert processed == len(unit_square_data)
        np.testing.assert_array_equal(np.vstack(model.seen), unit_square_data)

    def test_limit(self, unit_square_data):
        model = RecordingModel()
        assert StreamRunner(model, maxsize=2).run(iter_vectors(unit_square_data), limit=10) == 10
        assert len(model.seen) == 10

    def test_producer_error_propagates(self):
        def source():
            yield np.zeros(2)
            raise RuntimeError("sensor offline")

        model = RecordingModel()
        with pytest.raises(RuntimeError, match="sensor offline"):
            StreamRunner(model).run(source())
        assert len(model.seen) == 1

    def test_model_error_stops_producer(self, make_stream_art):
        model = make_stream_art()
        data = [np.zeros(2)] * 5 + [np.zeros(3)] + [np.zeros(2)] * 1000

        with pytest.raises(DimensionalityMismatchError):
            StreamRunner(model, maxsize=2).run(data)
        assert model.step_count == 5

    def test_model_without_learn_rejected(self):
        with pytest.raises(InvalidArgumentError):
            StreamRunner(object())
