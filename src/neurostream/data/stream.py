"""
Data Stream Module for Neurostream.

This module loads numeric datasets, normalizes them, and feeds them to a
streaming model one vector at a time. ``StreamRunner`` decouples the source
from the learner with a producer thread and a bounded queue; the model
itself is only ever touched by the consuming (calling) thread.
"""

import logging
import queue
import threading
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.preprocessing import MinMaxScaler

from ..utils.validation import InvalidArgumentError, require_greater_equal

logger = logging.getLogger(__name__)

# Seconds between checks of the stop flag while the producer waits on a full queue
PRODUCER_POLL_INTERVAL = 0.1


def load_vectors(
    path: Union[str, Path],
    delimiter: str = ",",
    has_header: bool = False,
) -> np.ndarray:
    """
    Load a numeric CSV file.

    Args:
        path: CSV file path
        delimiter: Field delimiter
        has_header: Whether the first line holds column names

    Returns:
        Array of shape (n, d), float64

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidArgumentError: If the file is empty or holds non-numeric values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    try:
        frame = pd.read_csv(path, sep=delimiter, header=0 if has_header else None)
    except pd.errors.EmptyDataError as e:
        raise InvalidArgumentError(f"{path}: no data") from e

    if frame.empty:
        raise InvalidArgumentError(f"{path}: no data")

    try:
        data = frame.to_numpy(dtype=np.float64)
    except ValueError as e:
        raise InvalidArgumentError(f"{path}: non-numeric values ({e})") from e

    if np.isnan(data).any():
        raise InvalidArgumentError(f"{path}: missing values")

    logger.info(f"Loaded {data.shape[0]} vectors of dimensionality {data.shape[1]} from {path}")
    return data


def iter_vectors(data: np.ndarray) -> Iterator[np.ndarray]:
    """Yield a copy of each row of ``data``."""
    for row in np.asarray(data, dtype=np.float64):
        yield row.copy()


def normalize(data: np.ndarray, feature_range: Tuple[float, float] = (0.0, 1.0)) -> np.ndarray:
    """Min-max scale each column of ``data`` into ``feature_range``."""
    scaler = MinMaxScaler(feature_range=feature_range)
    return scaler.fit_transform(np.asarray(data, dtype=np.float64))


class _ProducerFailure:
    """Carries an exception raised by the producer thread across the queue."""

    def __init__(self, error: BaseException):
        self.error = error


_END_OF_STREAM = object()


class StreamRunner:
    """
    Feed a model from a producer thread through a bounded queue.

    The producer iterates the source and blocks when the queue is full; the
    calling thread takes vectors off the queue and calls ``model.learn``.

    Args:
        model: Any object with a ``learn(vector)`` method
        maxsize: Queue capacity
    """

    def __init__(self, model, maxsize: int = 256):
        require_greater_equal(maxsize, "maxsize", 1)
        if not callable(getattr(model, "learn", None)):
            raise InvalidArgumentError(f"{type(model).__name__} has no learn() method")
        self.model = model
        self.maxsize = int(maxsize)

    def run(self, vectors: Iterable[np.ndarray], limit: Optional[int] = None) -> int:
        """
        Stream ``vectors`` into the model.

        Args:
            vectors: Source of input vectors
            limit: Maximum number of vectors to process

        Returns:
            Number of vectors processed

        Raises:
            Exception: Whatever the source or the model raised
        """
        if limit is not None:
            require_greater_equal(limit, "limit", 0)

        buffer: queue.Queue = queue.Queue(maxsize=self.maxsize)
        stop = threading.Event()

        producer = threading.Thread(
            target=self._produce,
            args=(vectors, limit, buffer, stop),
            name="neurostream-producer",
            daemon=True,
        )
        producer.start()

        processed = 0
        try:
            while True:
                item = buffer.get()
                if item is _END_OF_STREAM:
                    break
                if isinstance(item, _ProducerFailure):
                    raise item.error
                self.model.learn(item)
                processed += 1
        finally:
            stop.set()
            producer.join()

        logger.info(f"Stream finished after {processed} vectors")
        return processed

    @staticmethod
    def _produce(vectors, limit, buffer: queue.Queue, stop: threading.Event) -> None:
        def put(item) -> bool:
            while not stop.is_set():
                try:
                    buffer.put(item, timeout=PRODUCER_POLL_INTERVAL)
                    return True
                except queue.Full:
                    continue
            return False

        try:
            for count, vector in enumerate(vectors):
                if limit is not None and count >= limit:
                    break
                if not put(np.array(vector, dtype=np.float64)):
                    return
        except Exception as e:
            logger.error(f"Stream producer failed: {e}")
            put(_ProducerFailure(e))
            return
        put(_END_OF_STREAM)
