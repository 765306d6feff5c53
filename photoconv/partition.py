"""Split the matched entries into one contiguous chunk per worker."""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")


def chunk_bounds(length: int, workers: int) -> list[tuple[int, int]]:
    """Return ``workers`` half-open ``(start, stop)`` ranges covering ``range(length)``.

    The first ``length % workers`` ranges hold one extra item. When
    ``length < workers`` the trailing ranges are empty.
    """
    if workers < 1:
        raise ValueError(f"worker count must be at least 1, got {workers}")
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")

    base, extra = divmod(length, workers)
    bounds: list[tuple[int, int]] = []
    start = 0
    for index in range(workers):
        size = base + 1 if index < extra else base
        bounds.append((start, start + size))
        start += size
    return bounds


def partition(entries: Sequence[T], workers: int) -> list[list[T]]:
    """Split *entries* into exactly *workers* contiguous, near-equal chunks.

    Concatenating the chunks in order reproduces *entries*.
    """
    return [list(entries[start:stop]) for start, stop in chunk_bounds(len(entries), workers)]
