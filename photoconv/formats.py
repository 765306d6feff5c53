"""Supported image formats and source-extension matching."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from .errors import ConfigError


class ImageFormat(Enum):
    """Image formats the converter reads and writes.

    The value is the Pillow format name used when encoding.
    """

    PNG = "PNG"
    JPEG = "JPEG"
    TIFF = "TIFF"
    BMP = "BMP"
    GIF = "GIF"
    WEBP = "WEBP"
    ICO = "ICO"

    @property
    def supports_alpha(self) -> bool:
        return self not in (ImageFormat.JPEG, ImageFormat.BMP)

    @classmethod
    def from_extension(cls, extension: str) -> "ImageFormat":
        """Resolve an extension (``"JPG"``, ``".tif"`` ...) to a format."""
        key = normalize_extension(extension)
        try:
            return _EXTENSION_FORMATS[key]
        except KeyError:
            known = ", ".join(sorted(_EXTENSION_FORMATS))
            raise ConfigError(
                f"Unsupported image format {extension!r} (known: {known})"
            ) from None

    @classmethod
    def for_suffix(cls, suffix: str) -> Optional["ImageFormat"]:
        """Like ``from_extension`` but returns ``None`` for unknown suffixes."""
        return _EXTENSION_FORMATS.get(normalize_extension(suffix))


_FORMAT_EXTENSIONS: dict[ImageFormat, tuple[str, ...]] = {
    ImageFormat.PNG: ("png",),
    ImageFormat.JPEG: ("jpg", "jpeg", "jpe"),
    ImageFormat.TIFF: ("tiff", "tif"),
    ImageFormat.BMP: ("bmp",),
    ImageFormat.GIF: ("gif",),
    ImageFormat.WEBP: ("webp",),
    ImageFormat.ICO: ("ico",),
}

_EXTENSION_FORMATS: dict[str, ImageFormat] = {
    ext: fmt for fmt, exts in _FORMAT_EXTENSIONS.items() for ext in exts
}

SUPPORTED_EXTENSIONS = frozenset(_EXTENSION_FORMATS)


def normalize_extension(extension: str) -> str:
    """Lowercase an extension and strip surrounding whitespace and leading dots."""
    return extension.strip().lower().lstrip(".")


class ExtensionMatcher:
    """Case-insensitive predicate over a fixed set of source extensions."""

    def __init__(self, extensions: Iterable[str]) -> None:
        normalized = frozenset(normalize_extension(e) for e in extensions)
        normalized = frozenset(e for e in normalized if e)
        if not normalized:
            raise ConfigError("At least one source extension is required")
        self.extensions = normalized

    def matches(self, path: Path | str) -> bool:
        """Return ``True`` iff the final suffix of *path* is a configured extension."""
        suffix = Path(path).suffix
        if not suffix:
            return False
        return suffix[1:].lower() in self.extensions

    __call__ = matches

    def __repr__(self) -> str:
        return f"ExtensionMatcher({sorted(self.extensions)!r})"
