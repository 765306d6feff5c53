"""Pillow-backed image codec."""

from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image

from .errors import ConfigError, DecodeError, EncodeError
from .formats import ImageFormat

log = logging.getLogger(__name__)

_QUALITY_FORMATS = (ImageFormat.JPEG, ImageFormat.WEBP)


class PillowCodec:
    """Decode arbitrary image bytes and encode to a target ``ImageFormat``.

    Instances hold no per-image state and are shared by all workers.
    """

    def __init__(self, target: Optional[ImageFormat] = None) -> None:
        Image.init()
        if target is not None and target.value not in Image.SAVE:
            raise ConfigError(
                f"Installed Pillow cannot write {target.value} images"
            )
        self.target = target

    def decode(self, data: bytes, *, name: str = "<bytes>") -> Image.Image:
        """Decode *data* fully into memory.

        Raises:
            DecodeError: if Pillow cannot identify or load the image.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except Exception as exc:
            raise DecodeError(name, f"cannot decode image: {exc}") from exc
        return image

    def encode(
        self,
        image: Image.Image,
        fmt: ImageFormat,
        *,
        quality: Optional[int] = None,
        name: str = "<image>",
    ) -> bytes:
        """Encode *image* as *fmt* and return the file bytes.

        Raises:
            EncodeError: if Pillow fails to encode.
        """
        try:
            prepared = _prepare_mode(image, fmt)
            save_kwargs: dict = {"format": fmt.value}
            if quality is not None and fmt in _QUALITY_FORMATS:
                save_kwargs["quality"] = quality
            buffer = io.BytesIO()
            prepared.save(buffer, **save_kwargs)
        except Exception as exc:
            raise EncodeError(name, f"cannot encode as {fmt.value}: {exc}") from exc
        return buffer.getvalue()


def _prepare_mode(image: Image.Image, fmt: ImageFormat) -> Image.Image:
    """Convert *image* to a mode *fmt* can store."""
    mode = image.mode
    if fmt is ImageFormat.JPEG:
        if mode in ("RGB", "L", "CMYK"):
            return image
        if mode == "P":
            image = image.convert("RGBA")
            mode = image.mode
        if mode in ("RGBA", "LA"):
            return _flatten_alpha(image)
        return image.convert("RGB")
    if fmt is ImageFormat.BMP and mode not in ("1", "L", "P", "RGB"):
        if mode in ("RGBA", "LA", "PA"):
            return _flatten_alpha(image)
        return image.convert("RGB")
    if fmt in (ImageFormat.PNG, ImageFormat.WEBP, ImageFormat.GIF) and mode == "CMYK":
        return image.convert("RGB")
    return image


def _flatten_alpha(image: Image.Image) -> Image.Image:
    """Composite a transparent image onto a white RGB background."""
    rgba = image.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.split()[3])
    return background
