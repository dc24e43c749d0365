"""Re-encode rasters and the per-item JPEG converter."""

import asyncio
from functools import partial
from io import BytesIO
from typing import Any, Dict, Optional

from imagebatch.config import settings
from imagebatch.core.constants import (
    DEFAULT_JPEG_QUALITY,
    HIGH_QUALITY_SUBSAMPLING_THRESHOLD,
    PIL_MAX_JPEG_QUALITY,
)
from imagebatch.core.conversion.rasterizer import RasterImage, rasterize_async
from imagebatch.core.exceptions import EncodeError
from imagebatch.core.registry.models import Source
from imagebatch.utils.logging import get_logger

logger = get_logger(__name__)


def get_quality_params(quality: float) -> Dict[str, Any]:
    """Map a 0-1 quality onto Pillow's JPEG save parameters."""
    # Pillow recommends staying at or below 95
    jpeg_quality = round(quality * PIL_MAX_JPEG_QUALITY)
    jpeg_quality = max(1, min(PIL_MAX_JPEG_QUALITY, jpeg_quality))

    return {
        "quality": jpeg_quality,
        # 4:4:4 for high quality
        "subsampling": 0 if quality > HIGH_QUALITY_SUBSAMPLING_THRESHOLD else 2,
    }


def encode(
    raster: RasterImage, *, quality: float = DEFAULT_JPEG_QUALITY, format: str = "JPEG"
) -> bytes:
    """Encode a raster into image bytes.

    Args:
        raster: Opaque pixels to encode
        quality: Quality on a 0-1 scale
        format: Pillow format name

    Returns:
        Encoded image bytes

    Raises:
        EncodeError: If the quality is out of range or encoding fails
    """
    if not 0 <= quality <= 1:
        raise EncodeError(
            f"Quality must be within [0, 1], got {quality}",
            details={"quality": quality, "output_format": format},
        )

    save_params = get_quality_params(quality) if format.upper() == "JPEG" else {}

    try:
        with BytesIO() as buffer:
            raster.pixels.save(buffer, format=format, **save_params)
            return buffer.getvalue()
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(
            f"Failed to encode image as {format}: {str(e)}",
            details={
                "output_format": format,
                "dimensions": (raster.width, raster.height),
                "reason": str(e)[:200],
            },
        )


async def encode_async(
    raster: RasterImage, *, quality: float = DEFAULT_JPEG_QUALITY, format: str = "JPEG"
) -> bytes:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        None, partial(encode, raster, quality=quality, format=format)
    )


class JpegConverter:
    """Converts a single source into JPEG bytes."""

    def __init__(self, quality: Optional[float] = None):
        self.quality = settings.jpeg_quality if quality is None else quality

    async def convert(self, source: Source) -> bytes:
        raster = await rasterize_async(source)
        output = await encode_async(raster, quality=self.quality)
        logger.debug(
            "converted",
            filename=source.name,
            input_size=source.size,
            output_size=len(output),
        )
        return output
