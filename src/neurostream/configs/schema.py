"""
Configuration schemas for Neurostream.

This module defines Pydantic models for every model and learning algorithm,
ensuring construction-time parameters are validated once and stay immutable
for the lifetime of the model built from them.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from omegaconf import OmegaConf
from pydantic import BaseModel, Field, validator

LATTICE_PATTERN = "^(hexagonal|rectangular|torus-hexagonal|torus-rectangular)$"
DISTANCE_PATTERN = "^(euclidean|cosine)$"


class StreamART2AConfig(BaseModel):
    """Configuration for the StreamART2A clustering engine."""

    dimensionality: int = Field(2, ge=1)
    dmin: float = 0.0
    dmax: float = 1.0
    learning_rate: float = Field(0.05, gt=0.0, le=1.0)
    landmark_window_size: int = Field(1000, ge=1)
    q: int = Field(50, ge=1)
    K: int = Field(100000, ge=1)

    @validator("dmax")
    def validate_input_range(cls, v: float, values: Dict[str, Any]) -> float:
        """The input range must not be empty."""
        dmin = values.get("dmin")
        if dmin is not None and v <= dmin:
            raise ValueError(f"dmax ({v}) must be greater than dmin ({dmin})")
        return v

    class Config:
        extra = "forbid"
        validate_assignment = True


class SOMConfig(BaseModel):
    """Lattice shape, topology and metric shared by every map."""

    width: int = Field(20, ge=1)
    height: int = Field(40, ge=1)
    dimensionality: int = Field(2, ge=1)
    lattice: str = Field("hexagonal", pattern=LATTICE_PATTERN)
    metric: str = Field("euclidean", pattern=DISTANCE_PATTERN)
    seed: Optional[int] = Field(None, ge=0)

    class Config:
        extra = "forbid"
        validate_assignment = True


class UbiSOMConfig(SOMConfig):
    """Configuration for the UbiSOM streaming map."""

    alpha_0: float = Field(0.1, gt=0.0, le=1.0)
    alpha_f: float = Field(0.08, gt=0.0, le=1.0)
    sigma_0: float = Field(0.6, gt=0.0, le=1.0)
    sigma_f: float = Field(0.2, gt=0.0, le=1.0)
    beta: float = Field(0.7, ge=0.0, le=1.0)
    T: int = Field(2000, ge=1)
    auto_transition: bool = False


class PLSOMConfig(SOMConfig):
    """Configuration for the parameter-less SOM."""

    neighborhood_range: float = Field(10.0, gt=0.0)


class DSOMConfig(SOMConfig):
    """Configuration for the dynamic SOM."""

    plasticity: float = Field(1.0, gt=0.0)
    epsilon: float = Field(0.1, gt=0.0, le=1.0)


class BatchLearningConfig(BaseModel):
    """Configuration for (weighted) batch training."""

    sigma_i: float = Field(10.0, gt=0.0)
    sigma_f: float = Field(0.5, gt=0.0)
    order_epochs: int = Field(10, ge=0)
    convergence_epochs: int = Field(100, ge=0)

    class Config:
        extra = "forbid"
        validate_assignment = True


class ClassicLearningConfig(BaseModel):
    """Configuration for online epoch-based Kohonen training."""

    alpha_i: float = Field(0.1, gt=0.0, le=1.0)
    alpha_f: float = Field(0.01, gt=0.0, le=1.0)
    sigma_i: float = Field(10.0, gt=0.0)
    sigma_f: float = Field(0.5, gt=0.0)
    order_epochs: int = Field(10, ge=0)
    fine_tune_epochs: int = Field(50, ge=0)

    class Config:
        extra = "forbid"
        validate_assignment = True


class SystemConfig(BaseModel):
    """Main configuration combining all components."""

    stream_art: StreamART2AConfig = StreamART2AConfig()
    som: SOMConfig = SOMConfig()
    ubisom: UbiSOMConfig = UbiSOMConfig()
    plsom: PLSOMConfig = PLSOMConfig()
    dsom: DSOMConfig = DSOMConfig()
    batch_learning: BatchLearningConfig = BatchLearningConfig()
    classic_learning: ClassicLearningConfig = ClassicLearningConfig()

    # Experiment metadata
    experiment_name: str = "neurostream_experiment"
    tags: List[str] = []

    # Logging
    log_level: str = Field("INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_dir: Optional[Path] = None

    # Reproducibility
    seed: int = Field(42, ge=0)

    class Config:
        extra = "forbid"
        validate_assignment = True


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[List[str]] = None,
) -> SystemConfig:
    """
    Load a YAML configuration file and apply dotted overrides.

    Args:
        config_path: YAML file; defaults are used when omitted
        overrides: ``key.sub=value`` strings, e.g. ``["stream_art.q=20"]``

    Returns:
        Validated SystemConfig

    Raises:
        ValueError: If the file content or an override is invalid
    """
    config_dict: Dict[str, Any] = {}
    if config_path is not None:
        with open(config_path) as f:
            config_dict = yaml.safe_load(f) or {}

    cfg = OmegaConf.create(config_dict)
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))

    try:
        return SystemConfig(**OmegaConf.to_object(cfg))
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}")
