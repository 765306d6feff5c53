"""Concurrent batch image converter.

Public API -- all symbols that tests and external code import live here.
Internally the code is split across focused submodules; this file
re-exports the stable public surface so ``from photoconv import X`` works.
"""

from .codec import PillowCodec
from .config import build_run_config, parse_source_extensions, parse_worker_count
from .conversion import (
    convert_entries,
    convert_entry,
    destination_for,
    plan_destinations,
)
from .errors import (
    ConfigError,
    ConverterError,
    DecodeError,
    DeleteError,
    EncodeError,
    EntryError,
    OpenError,
    SaveError,
    TraversalError,
)
from .formats import ExtensionMatcher, ImageFormat
from .models import (
    BatchSummary,
    ConversionOutcome,
    DepthRange,
    ProgressState,
    RunConfig,
    SourceEntry,
)
from .partition import chunk_bounds, partition
from .progress import ProgressAggregator
from .sources import discover_images, iter_tree
from .utils import DEFAULT_WORKERS
from .workers import WorkerPool, log_summary, run_batch

__all__ = [
    # Models
    "BatchSummary",
    "ConversionOutcome",
    "DepthRange",
    "ProgressState",
    "RunConfig",
    "SourceEntry",
    # Constants
    "DEFAULT_WORKERS",
    # Errors
    "ConverterError",
    "ConfigError",
    "TraversalError",
    "EntryError",
    "OpenError",
    "DecodeError",
    "SaveError",
    "EncodeError",
    "DeleteError",
    # Formats & config
    "ImageFormat",
    "ExtensionMatcher",
    "build_run_config",
    "parse_source_extensions",
    "parse_worker_count",
    # Discovery
    "iter_tree",
    "discover_images",
    # Partitioning
    "chunk_bounds",
    "partition",
    # Conversion
    "PillowCodec",
    "destination_for",
    "plan_destinations",
    "convert_entry",
    "convert_entries",
    # Execution
    "ProgressAggregator",
    "WorkerPool",
    "run_batch",
    "log_summary",
]
