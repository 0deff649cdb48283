"""Shared fixtures for the Neurostream test suite."""

import numpy as np
import pytest

from neurostream.core.stream_art import StreamART2A


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def unit_square_data(rng):
    """500 points uniformly drawn from the unit square."""
    return rng.random((500, 2))


@pytest.fixture
def make_stream_art():
    """Factory for a 2-D StreamART2A on the unit square."""

    def _make(landmark_window_size=1000, q=50, K=100000, learning_rate=0.05):
        return StreamART2A(
            dimensionality=2,
            dmin=0.0,
            dmax=1.0,
            learning_rate=learning_rate,
            landmark_window_size=landmark_window_size,
            q=q,
            K=K,
        )

    return _make


@pytest.fixture
def csv_file(tmp_path, rng):
    """Two-column CSV of 200 points in [0, 10]."""
    path = tmp_path / "data.csv"
    data = rng.random((200, 2)) * 10.0
    np.savetxt(path, data, delimiter=",")
    return path
