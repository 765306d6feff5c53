"""Shared fixtures for the converter test suite.

Image trees are generated with Pillow inside ``tmp_path`` for every test.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from photoconv import ImageFormat, SourceEntry, build_run_config

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)
log = logging.getLogger("conftest")


def _write_image(
    path: Path,
    fmt: str = "JPEG",
    *,
    mode: str = "RGB",
    size: tuple[int, int] = (8, 6),
    color=(200, 40, 40),
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path, format=fmt)
    return path


@pytest.fixture
def make_image() -> Callable[..., Path]:
    """Return a factory writing a small solid-colour image to a path."""
    return _write_image


@pytest.fixture
def make_entry() -> Callable[[Path, Path], SourceEntry]:
    """Return a factory building a ``SourceEntry`` for *path* under *root*."""

    def _make(path: Path, root: Path) -> SourceEntry:
        relative = path.relative_to(root)
        return SourceEntry(
            path=path,
            relative=relative,
            depth=len(relative.parts),
            format=ImageFormat.for_suffix(path.suffix),
        )

    return _make


@pytest.fixture
def make_config(tmp_path: Path):
    """Return a ``build_run_config`` wrapper with png-from-jpg defaults."""

    def _make(**overrides):
        settings = {
            "target": "png",
            "sources": ["jpg"],
            "input_dir": tmp_path,
        }
        settings.update(overrides)
        return build_run_config(**settings)

    return _make


@pytest.fixture
def photo_dir(tmp_path: Path) -> Path:
    """Directory with 10 ``.jpg`` and 5 ``.png`` images."""
    root = tmp_path / "photos"
    for i in range(10):
        _write_image(root / f"img_{i:02d}.jpg", "JPEG", color=(i * 20, 10, 10))
    for i in range(5):
        _write_image(root / f"pic_{i}.png", "PNG", color=(10, i * 40, 10))
    log.debug("photo_dir fixture: %s", root)
    return root


@pytest.fixture
def corrupt_dir(tmp_path: Path) -> Path:
    """Directory with 9 valid ``.jpg`` images and one corrupt one."""
    root = tmp_path / "mixed"
    for i in range(9):
        _write_image(root / f"good_{i}.jpg", "JPEG")
    (root / "a_corrupt.jpg").write_bytes(b"this is not a jpeg at all")
    return root
