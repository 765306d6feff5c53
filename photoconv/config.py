"""Build and validate the immutable run configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from .errors import ConfigError
from .formats import ImageFormat, normalize_extension
from .models import DepthRange, RunConfig
from .utils import DEFAULT_WORKERS

log = logging.getLogger(__name__)


def parse_worker_count(value: Union[int, str, None]) -> int:
    """Return a positive worker count, raising ``ConfigError`` otherwise."""
    if value is None:
        return DEFAULT_WORKERS
    if isinstance(value, bool):
        raise ConfigError(f"Thread count must be a positive integer, got {value!r}")
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Thread count must be a positive integer, got {value!r}"
        ) from None
    if count < 1:
        raise ConfigError(f"Thread count must be a positive integer, got {value!r}")
    return count


def parse_quality(value: Union[int, str, None]) -> Optional[int]:
    if value is None:
        return None
    try:
        quality = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Quality must be an integer, got {value!r}") from None
    if not 1 <= quality <= 100:
        raise ConfigError(f"Quality must be between 1 and 100, got {quality}")
    return quality


def parse_source_extensions(values: Iterable[str]) -> frozenset[str]:
    """Normalize source extensions and check each names a known format.

    Accepts repeated values as well as comma-separated lists (``jpg,png``).
    """
    extensions: set[str] = set()
    for value in values:
        for part in str(value).split(","):
            ext = normalize_extension(part)
            if not ext:
                continue
            ImageFormat.from_extension(ext)
            extensions.add(ext)
    if not extensions:
        raise ConfigError("At least one source format is required")
    return frozenset(extensions)


def build_run_config(
    *,
    target: str,
    sources: Iterable[str],
    input_dir: Optional[Path] = None,
    output_dir: Optional[Path] = None,
    delete_original: bool = False,
    workers: Union[int, str, None] = None,
    depth: Union[str, DepthRange, None] = None,
    parallel_walk: bool = False,
    fail_fast: bool = False,
    skip_existing: bool = False,
    quality: Union[int, str, None] = None,
) -> RunConfig:
    """Validate user-facing settings and return a ``RunConfig``.

    Raises:
        ConfigError: on any invalid or inconsistent setting.
    """
    if not target or not str(target).strip():
        raise ConfigError("A target format is required")
    target_extension = normalize_extension(str(target))
    target_format = ImageFormat.from_extension(target_extension)

    source_extensions = parse_source_extensions(sources)
    if target_extension in source_extensions:
        raise ConfigError(
            f"Target extension {target_extension!r} is also a source extension; "
            "converted files would overwrite pending originals"
        )

    if isinstance(depth, DepthRange):
        depth_range = depth
    elif depth is None or not str(depth).strip():
        depth_range = DepthRange()
    else:
        depth_range = DepthRange.parse(str(depth))

    root = Path(input_dir) if input_dir is not None else Path.cwd()
    root = root.expanduser().resolve()
    out = Path(output_dir).expanduser().resolve() if output_dir is not None else None

    config = RunConfig(
        target_format=target_format,
        target_extension=target_extension,
        source_extensions=source_extensions,
        input_dir=root,
        output_dir=out,
        delete_original=delete_original,
        workers=parse_worker_count(workers),
        depth_range=depth_range,
        parallel_walk=parallel_walk,
        fail_fast=fail_fast,
        skip_existing=skip_existing,
        quality=parse_quality(quality),
    )
    log.debug("Run configuration: %s", config)
    return config
