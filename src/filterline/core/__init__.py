# filterline.core
# The streaming engine: Pipeline, Stage, Context and the error taxonomy.

from .pipeline import Pipeline
from .stage import Stage, stage, stream_stage
from .context import Context
from .errors import (
    FilterLineError,
    ConfigError,
    SourceNotFound,
    SourceUnreadable,
    InvalidPredicate,
    PipelineIOFailure,
    PlacementMoveFailure,
    BufferDisposed,
    HostTeardownDuringPlacement,
)

__all__ = [
    "Pipeline",
    "Stage",
    "stage",
    "stream_stage",
    "Context",
    "FilterLineError",
    "ConfigError",
    "SourceNotFound",
    "SourceUnreadable",
    "InvalidPredicate",
    "PipelineIOFailure",
    "PlacementMoveFailure",
    "BufferDisposed",
    "HostTeardownDuringPlacement",
]
