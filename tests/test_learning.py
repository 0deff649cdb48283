"""Tests for offline training and the PLSOM/DSOM online maps."""

import math

import numpy as np
import pytest

from neurostream.configs.schema import (
    BatchLearningConfig,
    ClassicLearningConfig,
    DSOMConfig,
    PLSOMConfig,
)
from neurostream.core.dsom import DSOM
from neurostream.core.micro_category import MicroCategory
from neurostream.core.plsom import PLSOM
from neurostream.core.som import BasicSOM
from neurostream.training.batch import BatchLearning, MicroCategoryBatchLearning
from neurostream.training.classic import ClassicLearning
from neurostream.utils.metrics import quantization_error
from neurostream.utils.validation import DimensionalityMismatchError, InvalidArgumentError


class TestBatchLearning:
    def test_single_neuron_becomes_mean(self):
        som = BasicSOM(1, 1, 2, seed=0)
        data = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 3.0]])

        BatchLearning(1.0, 1.0, order_epochs=1, convergence_epochs=0).train(som, data)

        np.testing.assert_allclose(som.weights[0], [1.0, 1.0])

    def test_unreached_neurons_keep_prototype(self):
        som = BasicSOM(3, 1, 2, lattice="rectangular", seed=0)
        som.weights[:] = [[0.0, 0.0], [5.0, 5.0], [9.0, 9.0]]
        data = np.array([[0.1, 0.0], [0.2, 0.0]])

        BatchLearning(1e-3, 1e-3, order_epochs=1, convergence_epochs=0).train(som, data)

        np.testing.assert_allclose(som.weights, [[0.15, 0.0], [5.0, 5.0], [9.0, 9.0]])

    def test_sigma_schedule(self):
        learning = BatchLearning(4.0, 1.0, order_epochs=2, convergence_epochs=2)

        assert learning.total_epochs == 4
        assert learning.sigma_at(-1) == 4.0
        assert learning.sigma_at(0) == 4.0
        assert learning.sigma_at(1) == pytest.approx(2.0)
        assert learning.sigma_at(2) == pytest.approx(1.0)

    def test_reduces_quantization_error(self, unit_square_data):
        som = BasicSOM(5, 5, 2, seed=2)
        before = quantization_error(som, unit_square_data)

        BatchLearning(3.0, 0.5, order_epochs=2, convergence_epochs=10).train(som, unit_square_data)

        assert quantization_error(som, unit_square_data) < before

    def test_notifies_once_per_epoch(self, unit_square_data):
        som = BasicSOM(3, 3, 2, seed=0)
        calls = []
        som.add_observer(calls.append)

        BatchLearning(2.0, 0.5, order_epochs=2, convergence_epochs=3).train(som, unit_square_data)

        assert len(calls) == 5

    def test_dimensionality_checked(self):
        som = BasicSOM(2, 2, 3, seed=0)
        with pytest.raises(DimensionalityMismatchError):
            BatchLearning(1.0, 0.5, 1, 1).train(som, np.zeros((4, 2)))

    def test_invalid_arguments(self):
        with pytest.raises(InvalidArgumentError):
            BatchLearning(0.0, 0.5, 1, 1)
        with pytest.raises(InvalidArgumentError):
            BatchLearning(1.0, 0.5, -1, 1)

    def test_from_config(self):
        learning = BatchLearning.from_config(BatchLearningConfig(order_epochs=3, convergence_epochs=7))
        assert learning.total_epochs == 10


class TestMicroCategoryBatchLearning:
    def test_weighted_mean(self):
        som = BasicSOM(1, 1, 2, seed=0)
        categories = [
            MicroCategory(np.array([0.0, 0.0]), weight=3),
            MicroCategory(np.array([4.0, 0.0]), weight=1),
        ]

        MicroCategoryBatchLearning(1.0, 1.0, order_epochs=1, convergence_epochs=0).train(som, categories)

        np.testing.assert_allclose(som.weights[0], [1.0, 0.0])

    def test_empty_collection_rejected(self):
        som = BasicSOM(2, 2, 2, seed=0)
        with pytest.raises(InvalidArgumentError):
            MicroCategoryBatchLearning(1.0, 0.5, 1, 1).train(som, [])

    def test_dimensionality_checked(self):
        som = BasicSOM(2, 2, 3, seed=0)
        with pytest.raises(DimensionalityMismatchError):
            MicroCategoryBatchLearning(1.0, 0.5, 1, 1).train(som, [MicroCategory(np.zeros(2))])


class TestClassicLearning:
    def test_kohonen_rule(self):
        som = BasicSOM(1, 1, 2, seed=0)
        som.weights[:] = 0.0
        learning = ClassicLearning(0.5, 0.5, 1.0, 1.0, order_epochs=0, fine_tune_epochs=2)

        learning.train(som, np.array([[1.0, 1.0]]))

        np.testing.assert_allclose(som.weights[0], [0.75, 0.75])

    def test_notifies_per_sample(self, unit_square_data):
        som = BasicSOM(3, 3, 2, seed=0)
        calls = []
        som.add_observer(calls.append)

        ClassicLearning(0.1, 0.01, 2.0, 0.5, order_epochs=1, fine_tune_epochs=1).train(
            som, unit_square_data[:20]
        )

        assert len(calls) == 40

    def test_reduces_quantization_error(self, unit_square_data):
        som = BasicSOM(5, 5, 2, seed=2)
        before = quantization_error(som, unit_square_data)

        ClassicLearning(0.3, 0.01, 3.0, 0.5, order_epochs=3, fine_tune_epochs=2).train(som, unit_square_data)

        assert quantization_error(som, unit_square_data) < before

    def test_from_config(self):
        learning = ClassicLearning.from_config(ClassicLearningConfig(order_epochs=2, fine_tune_epochs=3))
        assert learning.total_epochs == 5


class TestPLSOM:
    def test_diameter_estimate(self):
        som = PLSOM(3, 3, 2, neighborhood_range=2.0, seed=0)
        assert som.diameter == -1

        som.learn(np.array([0.0, 0.0]))
        assert som.diameter == 0.0

        som.learn(np.array([3.0, 4.0]))
        assert som.diameter == pytest.approx(5.0)

    def test_first_input_uses_maximum_epsilon(self):
        som = PLSOM(1, 1, 2, neighborhood_range=2.0, seed=0)
        som.weights[:] = 0.0

        som.learn(np.array([1.0, 0.0]))

        np.testing.assert_allclose(som.weights[0], [0.5, 0.0])

    def test_epsilon_scaled_by_diameter(self):
        som = PLSOM(1, 1, 1, neighborhood_range=1.0, seed=0)
        som.learn(np.array([0.0]))
        som.learn(np.array([4.0]))
        som.weights[:] = 3.0

        # S = 4, error = 1, so epsilon = 0.25
        som.learn(np.array([2.0]))

        assert som.weights[0, 0] == pytest.approx(3.0 - 0.25)

    def test_reservoir_bounded(self, unit_square_data):
        som = PLSOM(4, 4, 2, neighborhood_range=3.0, seed=0)
        for x in unit_square_data:
            som.learn(x)

        assert len(som._reservoir) <= som.reservoir_capacity == 3
        assert 0.0 < som.diameter <= math.sqrt(2)
        assert np.all(np.isfinite(som.weights))

    def test_from_config(self):
        som = PLSOM.from_config(PLSOMConfig(width=3, height=2, dimensionality=2, neighborhood_range=4.0))
        assert som.neighborhood_range == 4.0
        assert som.size == 6


class TestDSOM:
    def test_step_scaled_by_distance_to_bmu(self):
        som = DSOM(2, 1, 2, plasticity=5.0, epsilon=0.1, lattice="rectangular", seed=0)
        som.weights[:] = [[0.0, 0.0], [1.0, 0.0]]

        som.learn(np.array([0.2, 0.0]))

        # BMU error 0.2 and plasticity 5 give exp(-1) at lattice distance 1
        neigh = math.exp(-1.0)
        np.testing.assert_array_equal(som.weights[0], [0.0, 0.0])
        np.testing.assert_allclose(som.weights[1], [1.0 + 0.1 * 1.0 * neigh * (0.2 - 1.0), 0.0])

    def test_neighbor_step(self):
        som = DSOM(2, 1, 1, plasticity=1.0, epsilon=0.1, lattice="rectangular", seed=0)
        som.weights[:, 0] = [0.0, 2.0]

        som.learn(np.array([1.0]))

        # Tie goes to the first neuron; its error is 1 and the neighbor sits 2 away from it
        neigh = math.exp(-1.0)
        assert som.weights[0, 0] == 0.0
        assert som.weights[1, 0] == pytest.approx(2.0 + 0.1 * 2.0 * neigh * (1.0 - 2.0))

    def test_exact_match_leaves_map_unchanged(self):
        som = DSOM(2, 2, 2, plasticity=1.0, epsilon=0.1, seed=0)
        x = som.weights[3].copy()
        before = som.weights.copy()

        som.learn(x)

        np.testing.assert_array_equal(som.weights, before)

    def test_from_config(self):
        som = DSOM.from_config(DSOMConfig(width=2, height=2, dimensionality=2, plasticity=2.0, epsilon=0.2))
        assert (som.plasticity, som.epsilon) == (2.0, 0.2)
