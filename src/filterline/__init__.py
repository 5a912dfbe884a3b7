from .core.pipeline import Pipeline
from .core.stage import Stage, stage, stream_stage
from .core.context import Context
from .core.errors import (
    FilterLineError,
    SourceNotFound,
    SourceUnreadable,
    InvalidPredicate,
    PipelineIOFailure,
    PlacementMoveFailure,
    HostTeardownDuringPlacement,
)

from .components.source import FileSource, DocumentSource, Source
from .components.split import LineSplitter, split_lines
from .components.filter import filter_lines, match_line
from .components.io import write_to_file
from .config import Config, Settings, load_config, load_settings
from .filtering import FilterPipeline, FilterRun
from .placement import PlacementDecision, ResultPlacer, decide_placement
from .patterns import Polarity, build_predicate, resolve_predicate
from .history import PatternHistory
from .host import Document, Workspace, EditorHost, MemoryEditorHost
from .commands import FilterCommand, CommandResult

__all__ = [
    "Pipeline",
    "Stage",
    "stage",
    "stream_stage",
    "Context",
    "FilterLineError",
    "SourceNotFound",
    "SourceUnreadable",
    "InvalidPredicate",
    "PipelineIOFailure",
    "PlacementMoveFailure",
    "HostTeardownDuringPlacement",
    "FileSource",
    "DocumentSource",
    "Source",
    "LineSplitter",
    "split_lines",
    "filter_lines",
    "match_line",
    "write_to_file",
    "Config",
    "Settings",
    "load_config",
    "load_settings",
    "FilterPipeline",
    "FilterRun",
    "PlacementDecision",
    "ResultPlacer",
    "decide_placement",
    "Polarity",
    "build_predicate",
    "resolve_predicate",
    "PatternHistory",
    "Document",
    "Workspace",
    "EditorHost",
    "MemoryEditorHost",
    "FilterCommand",
    "CommandResult",
]
