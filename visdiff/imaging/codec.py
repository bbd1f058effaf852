"""Image codec — decodes inputs and encodes difference visualizations."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image

logger = logging.getLogger(__name__)


class ImageCodec(Protocol):
    def decode(self, path: str | Path) -> Optional[Image.Image]: ...

    def encode(self, image: Image.Image, path: str | Path,
               format: str = "PNG", quality: int = 100) -> None: ...


class PillowCodec:
    """Pillow-backed codec. Decoded images are always RGBA."""

    def decode(self, path: str | Path) -> Optional[Image.Image]:
        """Load an image fully into memory, or return None if it cannot be read."""
        try:
            with Image.open(path) as img:
                img.load()
                return img.convert("RGBA")
        except (OSError, ValueError) as e:
            logger.warning("Failed to load image \"%s\": %s", path, e)
            return None

    def encode(self, image: Image.Image, path: str | Path,
               format: str = "PNG", quality: int = 100) -> None:
        # Common names may lack a file extension
        image.save(path, format=format, quality=quality)
