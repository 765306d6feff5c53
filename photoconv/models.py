"""Shared data models for the converter."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import ConfigError
from .formats import ImageFormat
from .utils import DEFAULT_WORKERS


@dataclass(frozen=True)
class DepthRange:
    """Inclusive traversal depth bounds; files directly under the root are depth 1.

    ``max_depth=None`` leaves the range unbounded.
    """

    min_depth: int = 0
    max_depth: Optional[int] = None

    def __post_init__(self) -> None:
        if self.min_depth < 0:
            raise ConfigError(f"min depth must be non-negative, got {self.min_depth}")
        if self.max_depth is not None:
            if self.max_depth < 0:
                raise ConfigError(
                    f"max depth must be non-negative, got {self.max_depth}"
                )
            if self.min_depth > self.max_depth:
                raise ConfigError(
                    f"min depth {self.min_depth} exceeds max depth {self.max_depth}"
                )

    def contains(self, depth: int) -> bool:
        if depth < self.min_depth:
            return False
        return self.max_depth is None or depth <= self.max_depth

    def allows_descent(self, depth: int) -> bool:
        """Whether entries below a directory at *depth* can still be in range."""
        return self.max_depth is None or depth < self.max_depth

    @classmethod
    def parse(cls, text: str) -> "DepthRange":
        """Parse ``"MIN-MAX"`` (both non-negative integers)."""
        lo, sep, hi = text.strip().partition("-")
        if not sep:
            raise ConfigError(f"Depth range must look like MIN-MAX, got {text!r}")
        try:
            min_depth = int(lo)
            max_depth = int(hi)
        except ValueError:
            raise ConfigError(
                f"Depth range bounds must be integers, got {text!r}"
            ) from None
        return cls(min_depth, max_depth)

    def __str__(self) -> str:
        upper = "inf" if self.max_depth is None else str(self.max_depth)
        return f"{self.min_depth}-{upper}"


@dataclass(frozen=True)
class SourceEntry:
    """A matched source image discovered during traversal."""

    path: Path
    relative: Path
    depth: int
    format: Optional[ImageFormat]

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class RunConfig:
    """Read-only settings shared by every worker of one run."""

    target_format: ImageFormat
    target_extension: str
    source_extensions: frozenset[str]
    input_dir: Path
    output_dir: Optional[Path] = None
    delete_original: bool = False
    workers: int = DEFAULT_WORKERS
    depth_range: DepthRange = field(default_factory=DepthRange)
    parallel_walk: bool = False
    fail_fast: bool = False
    skip_existing: bool = False
    quality: Optional[int] = None


@dataclass
class ConversionOutcome:
    """Result of converting one source entry."""

    source: Path
    destination: Optional[Path] = None
    status: str = "pending"
    error_kind: Optional[str] = None
    error: Optional[str] = None
    deleted_original: bool = False
    elapsed_s: float = 0.0
    worker: int = -1

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def failed(self) -> bool:
        return self.status == "error"


@dataclass
class ProgressState:
    """Progress of one worker; written by its owner, read by the renderer."""

    worker: int
    total: int
    completed: int = 0
    failed: int = 0
    last_message: str = ""
    cancelled: int = 0
    finished: bool = False

    def advance(self, message: str, *, failed: bool = False) -> None:
        if self.completed >= self.total:
            raise ValueError(
                f"worker {self.worker} already completed {self.total} entries"
            )
        self.completed += 1
        if failed:
            self.failed += 1
        self.last_message = message

    def finish(self, *, cancelled: int = 0) -> None:
        """Mark the lane terminal; *cancelled* entries were never attempted."""
        self.cancelled = cancelled
        self.finished = True


@dataclass
class BatchSummary:
    """Aggregated outcomes of one run."""

    matched: int
    outcomes: list[ConversionOutcome] = field(default_factory=list)
    cancelled_run: bool = False

    @property
    def succeeded(self) -> list[ConversionOutcome]:
        return [o for o in self.outcomes if o.status == "success"]

    @property
    def failed(self) -> list[ConversionOutcome]:
        return [o for o in self.outcomes if o.status == "error"]

    @property
    def skipped(self) -> list[ConversionOutcome]:
        return [o for o in self.outcomes if o.status == "skipped"]

    @property
    def cancelled(self) -> list[ConversionOutcome]:
        return [o for o in self.outcomes if o.status == "cancelled"]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed or self.cancelled_run else 0
