"""Source image discovery on the local filesystem."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterator

from .errors import TraversalError
from .formats import ExtensionMatcher, ImageFormat
from .models import DepthRange, SourceEntry
from .utils import DEFAULT_WORKERS

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Directory scanning
# ---------------------------------------------------------------------------


def _scan_sorted(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def _open_root(root: Path) -> list[os.DirEntry]:
    if not root.is_dir():
        raise TraversalError(f"Input directory not found or not a directory: {root}")
    try:
        return _scan_sorted(root)
    except OSError as exc:
        raise TraversalError(f"Cannot open input directory {root}: {exc}") from exc


def _walk_entries(
    entries: list[os.DirEntry],
    root: Path,
    depth: int,
    depth_range: DepthRange,
    matcher: ExtensionMatcher,
) -> Iterator[SourceEntry]:
    """Yield matches among *entries* (all at *depth*) and below them."""
    for entry in entries:
        try:
            if entry.is_symlink():
                log.debug("Skipping symlink: %s", entry.path)
                continue
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = not is_dir and entry.is_file(follow_symlinks=False)
        except OSError as exc:
            log.warning("Cannot stat %s: %s", entry.path, exc)
            continue

        if is_dir:
            if not depth_range.allows_descent(depth):
                continue
            try:
                children = _scan_sorted(Path(entry.path))
            except OSError as exc:
                log.warning("Skipping unreadable directory %s: %s", entry.path, exc)
                continue
            yield from _walk_entries(children, root, depth + 1, depth_range, matcher)
        elif is_file and depth_range.contains(depth) and matcher.matches(entry.name):
            path = Path(entry.path)
            yield SourceEntry(
                path=path,
                relative=path.relative_to(root),
                depth=depth,
                format=ImageFormat.for_suffix(path.suffix),
            )


def iter_tree(
    root: Path,
    depth_range: DepthRange,
    matcher: ExtensionMatcher,
) -> Iterator[SourceEntry]:
    """Lazily walk *root* yielding matching images within *depth_range*.

    Files directly under *root* are at depth 1. Symlinks are never followed.
    The root is opened eagerly so an unreadable root raises ``TraversalError``
    from this call, before any entry is produced.
    """
    root = Path(root).resolve()
    top = _open_root(root)
    return _walk_entries(top, root, 1, depth_range, matcher)


def discover_images(
    root: Path,
    depth_range: DepthRange,
    matcher: ExtensionMatcher,
    *,
    parallel: bool = False,
    max_workers: int = DEFAULT_WORKERS,
) -> list[SourceEntry]:
    """Materialize every matching image under *root*.

    With ``parallel=True`` each top-level subdirectory is walked on its own
    thread. Results are concatenated in name order, so the returned list is
    the same as a serial walk.
    """
    root = Path(root).resolve()
    if not parallel:
        return list(iter_tree(root, depth_range, matcher))

    top = _open_root(root)
    subdirs = [entry for entry in top if _is_real_dir(entry)]

    # Each top-level item becomes one segment, kept in name order.
    segments: list[list[SourceEntry]] = []
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        pending = {
            entry.name: executor.submit(_collect, entry, root, depth_range, matcher)
            for entry in subdirs
        }
        for entry in top:
            if entry.name in pending:
                segments.append(pending[entry.name].result())
            else:
                segments.append(_collect(entry, root, depth_range, matcher))

    found = [source for segment in segments for source in segment]
    log.debug(
        "Parallel walk of %s: %s top-level directories, %s matches",
        root,
        len(subdirs),
        len(found),
    )
    return found


def _is_real_dir(entry: os.DirEntry) -> bool:
    try:
        return not entry.is_symlink() and entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _collect(
    entry: os.DirEntry,
    root: Path,
    depth_range: DepthRange,
    matcher: ExtensionMatcher,
) -> list[SourceEntry]:
    return list(_walk_entries([entry], root, 1, depth_range, matcher))
