"""Exception taxonomy for the batch converter."""

from __future__ import annotations

from pathlib import Path


class ConverterError(Exception):
    """Base class for every error raised by ``photoconv``."""


# ---------------------------------------------------------------------------
# Setup errors (fatal, raised before any work starts)
# ---------------------------------------------------------------------------


class ConfigError(ConverterError):
    """Raised when the run configuration is invalid."""


class TraversalError(ConverterError):
    """Raised when the traversal root cannot be opened."""


# ---------------------------------------------------------------------------
# Per-entry errors (recorded as failed outcomes, never fatal)
# ---------------------------------------------------------------------------


class EntryError(ConverterError):
    """A failure tied to one source file."""

    kind = "entry"

    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = Path(path)
        self.message = message


class OpenError(EntryError):
    """Raised when a source file cannot be read."""

    kind = "open"


class DecodeError(EntryError):
    """Raised when the codec cannot decode a source file."""

    kind = "decode"


class SaveError(EntryError):
    """Raised when the converted image cannot be written."""

    kind = "save"


class EncodeError(SaveError):
    """Raised when the codec cannot encode an image to the target format."""


class DeleteError(EntryError):
    """Raised when the original cannot be removed after a successful save."""

    kind = "delete"
