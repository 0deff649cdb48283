#!/usr/bin/env python3
"""
Example usage script for Neurostream.

This script demonstrates how to:
1. Summarize a drifting stream with StreamART2A and query the archive
2. Train a SOM from the archived micro-categories
3. Monitor a stream with UbiSOM

Run with: python examples/basic_usage.py
"""

import logging

import numpy as np

from neurostream import (
    BasicSOM,
    MicroCategoryBatchLearning,
    StreamART2A,
    UbiSOM,
)
from neurostream.utils.logging import setup_logging
from neurostream.utils.metrics import MetricsRecorder, SOMStatistics

setup_logging(level="INFO", format_type="simple")
logger = logging.getLogger(__name__)


def drifting_stream(n: int, seed: int = 0) -> np.ndarray:
    """Two Gaussian clusters whose centers slowly swap places."""
    rng = np.random.default_rng(seed)
    t = np.linspace(0.0, 1.0, n)[:, np.newaxis]
    first = (1 - t) * np.array([0.25, 0.25]) + t * np.array([0.75, 0.75])
    second = (1 - t) * np.array([0.75, 0.25]) + t * np.array([0.25, 0.75])
    centers = np.where(rng.random((n, 1)) < 0.5, first, second)
    return np.clip(centers + rng.normal(scale=0.05, size=(n, 2)), 0.0, 1.0)


def demonstrate_stream_art(data: np.ndarray):
    logger.info("=== StreamART2A ===")
    model = StreamART2A(
        dimensionality=2, dmin=0.0, dmax=1.0,
        learning_rate=0.05, landmark_window_size=500, q=30, K=10000,
    )
    for x in data:
        model.learn(x)

    logger.info(f"Archived {model.archive_size} micro-categories over {model.step_count} steps")
    recent = model.codebook_between(model.step_count - 1000, model.step_count)
    logger.info(f"Micro-categories from the last 1000 steps: {len(recent)}")
    return recent


def demonstrate_batch_som(categories, data: np.ndarray) -> None:
    logger.info("=== Batch SOM from micro-categories ===")
    som = BasicSOM(10, 10, 2, lattice="hexagonal", seed=1)
    MicroCategoryBatchLearning(sigma_i=5.0, sigma_f=0.5, order_epochs=5, convergence_epochs=20).train(
        som, categories
    )
    logger.info(str(SOMStatistics.compute(som, data[-1000:])))


def demonstrate_ubisom(data: np.ndarray) -> None:
    logger.info("=== UbiSOM ===")
    som = UbiSOM(10, 10, 2, T=500, auto_transition=True, seed=1)
    recorder = MetricsRecorder()
    som.add_observer(recorder)
    for x in data:
        som.learn(x)

    logger.info(
        f"Phase: {som.phase.value} | drift: {som.current_drift:.4f} | "
        f"activity: {som.current_activity:.4f} | QE: {som.current_quantization_error:.4f}"
    )
    logger.info(f"Recorded {len(recorder.drift)} drift samples")


def main():
    data = drifting_stream(5000)
    categories = demonstrate_stream_art(data)
    demonstrate_batch_som(categories, data)
    demonstrate_ubisom(data)


if __name__ == "__main__":
    main()
