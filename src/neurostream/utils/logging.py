"""
Logging Utilities for Neurostream.

This module provides logging setup with colored console output, optional
log files, and a small CSV metrics logger for streaming experiments.
"""

import csv
import datetime
import logging
import numbers
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import colorlog


def setup_logging(
    level: Union[str, int] = "INFO",
    log_dir: Optional[Union[str, Path]] = None,
    experiment_name: Optional[str] = None,
    console_output: bool = True,
    file_output: bool = True,
    format_type: str = "detailed",
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files
        experiment_name: Name of experiment for log file naming
        console_output: Whether to output to console
        file_output: Whether to output to file (requires ``log_dir``)
        format_type: Format type ("simple", "detailed")
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    # Clear any existing handlers
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    formatters = create_formatters(format_type)

    if console_output:
        console_handler = colorlog.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatters["console"])
        root_logger.addHandler(console_handler)

    if file_output and log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        log_filename = f"{experiment_name}.log" if experiment_name else "neurostream.log"
        file_handler = logging.FileHandler(log_dir / log_filename)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatters["file"])
        root_logger.addHandler(file_handler)

        error_filename = f"{experiment_name}_error.log" if experiment_name else "neurostream_error.log"
        error_handler = logging.FileHandler(log_dir / error_filename)
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatters["file"])
        root_logger.addHandler(error_handler)

    configure_external_loggers()

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured successfully")
    if log_dir and file_output:
        logger.info(f"Log files will be saved to: {log_dir}")


def create_formatters(format_type: str = "detailed") -> dict:
    """
    Create logging formatters for different output types.

    Args:
        format_type: Type of formatting ("simple", "detailed")

    Returns:
        Dictionary with "console" and "file" formatters

    Raises:
        ValueError: On an unknown format type
    """
    if format_type == "simple":
        console_format = "%(log_color)s%(levelname)-8s%(reset)s %(message)s"
        file_format = "%(asctime)s - %(levelname)-8s - %(message)s"

    elif format_type == "detailed":
        console_format = (
            "%(log_color)s%(asctime)s%(reset)s | "
            "%(log_color)s%(levelname)-8s%(reset)s | "
            "%(cyan)s%(name)-24s%(reset)s | "
            "%(message)s"
        )
        file_format = (
            "%(asctime)s | %(levelname)-8s | %(name)-24s | "
            "%(filename)s:%(lineno)d | %(message)s"
        )

    else:
        raise ValueError(f"Unknown format type: {format_type}")

    console_formatter = colorlog.ColoredFormatter(
        console_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'white',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )

    file_formatter = logging.Formatter(
        file_format,
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    return {
        "console": console_formatter,
        "file": file_formatter,
    }


def configure_external_loggers() -> None:
    """Configure logging levels for external libraries to reduce noise."""
    external_loggers = {
        "matplotlib": logging.WARNING,
        "numba": logging.WARNING,
        "sklearn": logging.WARNING,
    }

    for logger_name, level in external_loggers.items():
        logging.getLogger(logger_name).setLevel(level)


class MetricsLogger:
    """
    Append-only CSV log of run summaries.

    Each row is ``(timestamp, step, metric_name, metric_value)``; several runs
    of the same experiment can share one file, keyed by the step count each
    model reached. Rows written by this instance are also kept in memory.

    Args:
        log_file: CSV file; its header is written when the file is new
    """

    FIELDS = ("timestamp", "step", "metric_name", "metric_value")

    def __init__(self, log_file: Union[str, Path]):
        self.log_file = Path(log_file)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        self.history: List[Tuple[int, str, float]] = []

        if not self.log_file.exists():
            with open(self.log_file, "w", newline="") as f:
                csv.writer(f).writerow(self.FIELDS)

    def log_metric(self, step: int, metric_name: str, metric_value: float) -> None:
        """Append a single metric value."""
        timestamp = datetime.datetime.now().isoformat()
        row = (int(step), metric_name, float(metric_value))
        self.history.append(row)

        with open(self.log_file, "a", newline="") as f:
            csv.writer(f).writerow((timestamp, *row))

    def log_metrics_dict(self, step: int, metrics: Dict[str, object]) -> None:
        """Append every numeric entry of ``metrics``; other values are skipped."""
        for name, value in metrics.items():
            if isinstance(value, numbers.Real) and not isinstance(value, bool):
                self.log_metric(step, name, value)

    def get_metric_history(self, metric_name: str) -> List[Tuple[int, float]]:
        """``(step, value)`` pairs logged for ``metric_name``."""
        return [(step, value) for step, name, value in self.history if name == metric_name]
