from .graph import build_graph, run_pipeline
from .core.config import Settings
from .core.types import ChartImage, Dataset, PipelineResult, StatisticsBundle

__all__ = [
    "ChartImage",
    "Dataset",
    "PipelineResult",
    "Settings",
    "StatisticsBundle",
    "build_graph",
    "run_pipeline",
]
