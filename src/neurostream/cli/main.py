"""
Command-line interface for Neurostream.

This module runs the streaming models over CSV datasets: StreamART2A
summarization, UbiSOM self-monitoring, and offline batch SOM training.
The input dimensionality of every model is taken from the data file.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
import numpy as np

from ..configs.schema import SystemConfig, load_config
from ..core.som import BasicSOM, SelfOrganizingMap
from ..core.stream_art import StreamART2A
from ..core.ubisom import UbiSOM
from ..data.stream import StreamRunner, iter_vectors, load_vectors, normalize
from ..training.batch import BatchLearning, MicroCategoryBatchLearning
from ..utils.logging import MetricsLogger, setup_logging
from ..utils.metrics import MetricsRecorder, SOMStatistics

logger = logging.getLogger(__name__)


def common_options(func):
    """Options shared by every command."""
    options = [
        click.option(
            "--config",
            "-c",
            type=click.Path(exists=True, path_type=Path),
            default=None,
            help="Path to configuration file (YAML)",
        ),
        click.option(
            "--data",
            "-d",
            type=click.Path(exists=True, path_type=Path),
            required=True,
            help="Numeric CSV file, one vector per line",
        ),
        click.option(
            "--header/--no-header",
            default=False,
            help="Whether the CSV file starts with a header line",
        ),
        click.option(
            "--normalize",
            "normalize_data",
            is_flag=True,
            default=False,
            help="Min-max scale every column into [0, 1]",
        ),
        click.option(
            "--set",
            "overrides",
            multiple=True,
            help="Configuration override, e.g. --set stream_art.q=20",
        ),
        click.option(
            "--debug",
            is_flag=True,
            default=False,
            help="Enable debug logging and show full tracebacks",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def prepare(
    config: Optional[Path],
    overrides: Tuple[str, ...],
    data: Path,
    header: bool,
    normalize_data: bool,
    debug: bool,
) -> Tuple[SystemConfig, np.ndarray]:
    """Load configuration and data, and set up logging."""
    system_config = load_config(config, list(overrides))

    setup_logging(
        level="DEBUG" if debug else system_config.log_level,
        log_dir=system_config.log_dir,
        experiment_name=system_config.experiment_name,
        format_type="detailed" if debug else "simple",
    )

    vectors = load_vectors(data, has_header=header)
    if normalize_data:
        vectors = normalize(vectors)
    return system_config, vectors


def som_to_dict(som: SelfOrganizingMap, data: np.ndarray) -> dict:
    stats = SOMStatistics.compute(som, data)
    return {
        "width": som.width,
        "height": som.height,
        "dimensionality": som.dimensionality,
        "lattice": type(som.lattice).__name__,
        "prototypes": som.prototypes().tolist(),
        "quantization_error": stats.quantization_error,
        "topographic_error": stats.topographic_error,
    }


def write_json(payload: dict, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w") as f:
        json.dump(payload, f, indent=2)


def log_run_metrics(system_config: SystemConfig, step: int, metrics: dict) -> None:
    """Append a run summary to the experiment's metrics CSV when a log directory is set."""
    if system_config.log_dir is None:
        return
    log_file = Path(system_config.log_dir) / f"{system_config.experiment_name}_metrics.csv"
    MetricsLogger(log_file).log_metrics_dict(step, metrics)


@click.command("stream-art")
@common_options
@click.option("--t-low", type=int, default=None, help="Lower timestamp bound of the codebook query")
@click.option("--t-high", type=int, default=None, help="Upper timestamp bound of the codebook query")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the queried codebook as JSON",
)
@click.option(
    "--som-output",
    type=click.Path(path_type=Path),
    default=None,
    help="Train a SOM from the queried codebook and write it as JSON",
)
def stream_art(
    config: Optional[Path],
    data: Path,
    header: bool,
    normalize_data: bool,
    overrides: Tuple[str, ...],
    debug: bool,
    t_low: Optional[int],
    t_high: Optional[int],
    output: Optional[Path],
    som_output: Optional[Path],
) -> None:
    """
    Summarize a data stream into micro-categories with StreamART2A.

    The queried codebook holds the archived categories with timestamp in
    [--t-low, --t-high]; a missing bound leaves that side open.
    """
    try:
        system_config, vectors = prepare(config, overrides, data, header, normalize_data, debug)
        system_config.stream_art.dimensionality = vectors.shape[1]

        model = StreamART2A.from_config(system_config.stream_art)
        StreamRunner(model).run(iter_vectors(vectors))

        if t_low is not None and t_high is not None:
            categories = model.codebook_between(t_low, t_high)
        elif t_low is not None:
            categories = model.codebook_until(t_low)
        elif t_high is not None:
            categories = model.codebook_between(0, t_high)
        else:
            categories = model.codebook()

        click.echo(
            f"Processed {model.step_count} vectors | archive size: {model.archive_size} | "
            f"queried categories: {len(categories)}"
        )
        log_run_metrics(
            system_config,
            model.step_count,
            {
                "archive_size": model.archive_size,
                "active_codebook_size": model.active_codebook_size,
                "vigilance": model.vigilance,
                "queried_categories": len(categories),
            },
        )

        if output:
            write_json(
                {
                    "step_count": model.step_count,
                    "t_low": t_low,
                    "t_high": t_high,
                    "categories": [category.to_dict() for category in categories],
                },
                output,
            )
            click.echo(f"Codebook saved to {output}")

        if som_output:
            system_config.som.dimensionality = vectors.shape[1]
            som = BasicSOM.from_config(system_config.som)
            MicroCategoryBatchLearning.from_config(system_config.batch_learning).train(som, categories)
            write_json(som_to_dict(som, vectors), som_output)
            click.echo(f"SOM saved to {som_output}")

    except Exception as e:
        logger.error(f"StreamART2A run failed: {e}")
        click.echo(f"Error: {e}", err=True)
        if debug:
            raise
        sys.exit(1)


@click.command("ubisom")
@common_options
@click.option(
    "--metrics",
    "-m",
    type=click.Path(path_type=Path),
    default=None,
    help="Write drift/activity/QE time series as CSV",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the final map as JSON",
)
def ubisom(
    config: Optional[Path],
    data: Path,
    header: bool,
    normalize_data: bool,
    overrides: Tuple[str, ...],
    debug: bool,
    metrics: Optional[Path],
    output: Optional[Path],
) -> None:
    """Stream data through a UbiSOM and record its self-monitoring signals."""
    try:
        system_config, vectors = prepare(config, overrides, data, header, normalize_data, debug)
        system_config.ubisom.dimensionality = vectors.shape[1]

        model = UbiSOM.from_config(system_config.ubisom)
        recorder = MetricsRecorder()
        model.add_observer(recorder)

        StreamRunner(model).run(iter_vectors(vectors))

        click.echo(
            f"Processed {model.step_count} vectors | phase: {model.phase.value} | "
            f"drift: {model.current_drift:.4f} | activity: {model.current_activity:.4f} | "
            f"QE: {model.current_quantization_error:.4f}"
        )
        log_run_metrics(
            system_config,
            model.step_count,
            {
                "drift": model.current_drift,
                "activity": model.current_activity,
                "quantization_error": model.current_quantization_error,
            },
        )

        if metrics:
            recorder.to_csv(metrics)
            click.echo(f"Metrics saved to {metrics}")

        if output:
            write_json(som_to_dict(model, vectors), output)
            click.echo(f"Map saved to {output}")

    except Exception as e:
        logger.error(f"UbiSOM run failed: {e}")
        click.echo(f"Error: {e}", err=True)
        if debug:
            raise
        sys.exit(1)


@click.command("batch-som")
@common_options
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the trained map as JSON",
)
@click.option(
    "--init-from-data",
    is_flag=True,
    default=False,
    help="Initialize prototypes from randomly sampled inputs",
)
def batch_som(
    config: Optional[Path],
    data: Path,
    header: bool,
    normalize_data: bool,
    overrides: Tuple[str, ...],
    debug: bool,
    output: Optional[Path],
    init_from_data: bool,
) -> None:
    """Train a SOM offline with batch learning and report its quality."""
    try:
        system_config, vectors = prepare(config, overrides, data, header, normalize_data, debug)
        system_config.som.dimensionality = vectors.shape[1]

        som = BasicSOM.from_config(system_config.som)
        if init_from_data:
            som.initialize_from(vectors)

        BatchLearning.from_config(system_config.batch_learning).train(som, vectors)

        stats = SOMStatistics.compute(som, vectors)
        click.echo(str(stats))
        log_run_metrics(
            system_config,
            len(vectors),
            {
                "quantization_error": stats.quantization_error,
                "topographic_error": stats.topographic_error,
            },
        )

        if output:
            write_json(som_to_dict(som, vectors), output)
            click.echo(f"Map saved to {output}")

    except Exception as e:
        logger.error(f"Batch training failed: {e}")
        click.echo(f"Error: {e}", err=True)
        if debug:
            raise
        sys.exit(1)


@click.group()
def main() -> None:
    """Neurostream: streaming neural models CLI."""
    pass


main.add_command(stream_art)
main.add_command(ubisom)
main.add_command(batch_som)


if __name__ == "__main__":
    main()
