"""Re-encode a JPEG file at a chosen quality."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

PathLike = Union[str, "os.PathLike[str]"]

DEFAULT_QUALITY = 75
MIN_QUALITY = 1
MAX_QUALITY = 100


def compress_jpeg(
    input_filename: PathLike, output_filename: PathLike, quality: int = DEFAULT_QUALITY
) -> Path:
    """Decode the JPEG at ``input_filename`` and write it again at ``quality``.

    Grayscale images stay grayscale; everything else is written as RGB.
    Quality is clamped to 1..100. Raises FileNotFoundError if the input is
    missing and ValueError if it is not a JPEG image.
    """
    source = Path(input_filename)
    try:
        with Image.open(source) as img:
            if img.format != "JPEG":
                raise ValueError(f"Not a JPEG file: {source}")
            pixels = img.convert("L" if img.mode == "L" else "RGB")
    except UnidentifiedImageError as exc:
        raise ValueError(f"Not a JPEG file: {source}") from exc

    level = min(MAX_QUALITY, max(MIN_QUALITY, int(quality)))
    target = Path(output_filename)
    pixels.save(target, format="JPEG", quality=level)
    return target