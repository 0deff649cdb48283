"""
Neurostream: Streaming Neural Models.

Unsupervised neural models that learn from a data stream one vector at a
time with bounded memory, and report on their own fit to the stream.

This package provides:
- StreamART2A, an adaptive-resonance clustering engine that summarizes a
  stream into weighted micro-categories archived per landmark window
- Self-organizing maps on rectangular, hexagonal and toroidal lattices
- UbiSOM, a streaming SOM with drift-driven learning schedules
- PLSOM and DSOM online maps, and batch/classic offline training
"""

__version__ = "0.1.0"
__author__ = "Research Team"

from .configs.schema import SystemConfig, load_config
from .core.dsom import DSOM
from .core.micro_category import MicroCategory
from .core.plsom import PLSOM
from .core.som import BasicSOM, SelfOrganizingMap
from .core.stream_art import StreamART2A, StreamART2AWithConceptDrift
from .core.ubisom import UbiSOM
from .training.batch import BatchLearning, MicroCategoryBatchLearning
from .training.classic import ClassicLearning

__all__ = [
    "SystemConfig",
    "load_config",
    "MicroCategory",
    "StreamART2A",
    "StreamART2AWithConceptDrift",
    "SelfOrganizingMap",
    "BasicSOM",
    "UbiSOM",
    "PLSOM",
    "DSOM",
    "BatchLearning",
    "MicroCategoryBatchLearning",
    "ClassicLearning",
]
