"""Cross-cutting helpers: constants and path utilities."""

from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_WORKERS = 8
MAX_REPORTED_FAILURES = 10
LOG_FILE_NAME = "photoconv.log"
PARTIAL_SUFFIX = ".part"
DONE_MESSAGE = "Done!"


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def lane_message(path: Path) -> str:
    """Short progress-lane label for *path*."""
    return f"...{path.name}"


def partial_path(destination: Path) -> Path:
    """Temporary sibling the encoder writes to before the final rename."""
    return destination.with_name(destination.name + PARTIAL_SUFFIX)
