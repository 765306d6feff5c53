"""Per-entry conversion: read, decode, encode, save and optionally delete."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Iterable, Optional

from .codec import PillowCodec
from .errors import DeleteError, EntryError, OpenError, SaveError
from .models import ConversionOutcome, RunConfig, SourceEntry
from .utils import partial_path

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Destination planning
# ---------------------------------------------------------------------------


def destination_for(entry: SourceEntry, config: RunConfig) -> Path:
    """Same stem with the target extension.

    Written beside the source, or under ``config.output_dir`` mirroring the
    entry's sub-directory relative to the input root.
    """
    name = f"{entry.path.stem}.{config.target_extension}"
    if config.output_dir is None:
        return entry.path.with_name(name)
    return config.output_dir / entry.relative.parent / name


def plan_destinations(
    entries: Iterable[SourceEntry],
    config: RunConfig,
) -> tuple[list[SourceEntry], list[ConversionOutcome]]:
    """Drop entries whose destination another entry already claims.

    Returns ``(accepted, conflicts)``. A destination is refused when an
    earlier entry maps to the same path or when it is itself a pending source.
    """
    entries = list(entries)
    sources = {entry.path for entry in entries}
    claimed: dict[Path, Path] = {}
    accepted: list[SourceEntry] = []
    conflicts: list[ConversionOutcome] = []

    for entry in entries:
        destination = destination_for(entry, config)
        if destination in sources:
            reason = "destination is a pending source file"
        elif destination in claimed:
            reason = f"destination already claimed by {claimed[destination]}"
        else:
            claimed[destination] = entry.path
            accepted.append(entry)
            continue
        log.warning("Conflict: %s -> %s (%s)", entry.path, destination, reason)
        conflicts.append(
            ConversionOutcome(
                source=entry.path,
                destination=destination,
                status="error",
                error_kind="conflict",
                error=reason,
            )
        )
    return accepted, conflicts


# ---------------------------------------------------------------------------
# Conversion task
# ---------------------------------------------------------------------------


def _write_atomic(destination: Path, data: bytes) -> None:
    partial = partial_path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        partial.write_bytes(data)
        os.replace(partial, destination)
    except OSError as exc:
        try:
            partial.unlink()
        except FileNotFoundError:
            pass
        except OSError as cleanup_exc:
            log.warning("Could not remove partial file %s: %s", partial, cleanup_exc)
        raise SaveError(destination, f"cannot write output: {exc}") from exc


def convert_entry(
    entry: SourceEntry,
    config: RunConfig,
    codec: PillowCodec,
    *,
    worker: int = -1,
) -> ConversionOutcome:
    """Convert one source image and return its outcome.

    Never raises for per-entry problems; open, decode, save and delete
    failures are captured in the returned outcome. The original is only
    removed after the converted file has been written.
    """
    destination = destination_for(entry, config)
    outcome = ConversionOutcome(
        source=entry.path,
        destination=destination,
        worker=worker,
    )
    t0 = time.perf_counter()

    try:
        if config.skip_existing and destination.exists():
            outcome.status = "skipped"
            log.debug("convert_entry: SKIP existing %s", destination)
            return outcome

        try:
            data = entry.path.read_bytes()
        except OSError as exc:
            raise OpenError(entry.path, f"cannot read source: {exc}") from exc
        log.debug("convert_entry: opened %s (%s bytes)", entry.path, len(data))

        image = codec.decode(data, name=str(entry.path))
        log.debug(
            "convert_entry: decoded %s (%s %sx%s)",
            entry.name,
            image.mode,
            image.width,
            image.height,
        )

        encoded = codec.encode(
            image,
            config.target_format,
            quality=config.quality,
            name=str(entry.path),
        )
        if destination.exists():
            log.debug("convert_entry: overwriting %s", destination)
        _write_atomic(destination, encoded)
        log.debug("convert_entry: saved %s", destination)

        if config.delete_original:
            try:
                entry.path.unlink()
            except OSError as exc:
                raise DeleteError(entry.path, f"cannot delete original: {exc}") from exc
            outcome.deleted_original = True
            log.debug("convert_entry: deleted original %s", entry.path)

        outcome.status = "success"
    except EntryError as exc:
        outcome.status = "error"
        outcome.error_kind = exc.kind
        outcome.error = exc.message
        log.warning("convert_entry: %s failure for %s: %s", exc.kind, entry.path, exc.message)
    finally:
        outcome.elapsed_s = round(time.perf_counter() - t0, 4)

    return outcome


def convert_entries(
    entries: Iterable[SourceEntry],
    config: RunConfig,
    codec: Optional[PillowCodec] = None,
) -> list[ConversionOutcome]:
    """Convert *entries* sequentially on the calling thread."""
    codec = codec or PillowCodec(config.target_format)
    return [convert_entry(entry, config, codec) for entry in entries]
