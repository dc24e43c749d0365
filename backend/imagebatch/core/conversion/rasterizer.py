"""Decode sources into opaque RGB rasters."""

import asyncio
from dataclasses import dataclass
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from imagebatch.core.constants import FLATTEN_BACKGROUND, MAX_IMAGE_PIXELS
from imagebatch.core.exceptions import DecodeError
from imagebatch.core.registry.models import Source
from imagebatch.utils.logging import get_logger

Image.MAX_IMAGE_PIXELS = MAX_IMAGE_PIXELS

logger = get_logger(__name__)


@dataclass(frozen=True)
class RasterImage:
    """Decoded, fully opaque pixels of a single frame."""

    pixels: Image.Image
    width: int
    height: int


def flatten(image: Image.Image) -> Image.Image:
    """Composite any transparency onto a white background and return RGB."""
    if image.mode == "P":
        image = image.convert("RGBA" if "transparency" in image.info else "RGB")
    elif image.mode == "PA":
        image = image.convert("RGBA")

    if image.mode in ("RGBA", "LA"):
        background = Image.new("RGB", image.size, FLATTEN_BACKGROUND)
        background.paste(image, mask=image.split()[-1])
        return background

    if image.mode != "RGB":
        return image.convert("RGB")
    return image


def rasterize(source: Source) -> RasterImage:
    """Decode a source into its pixel matrix.

    Animated inputs contribute their first frame only.

    Args:
        source: Input to decode

    Returns:
        Opaque RGB raster with its natural dimensions

    Raises:
        DecodeError: If the bytes are empty or not a decodable image
    """
    if not source.data:
        raise DecodeError(
            f"{source.name} is empty", details={"filename": source.name, "reason": "empty"}
        )

    try:
        with BytesIO(source.data) as buffer:
            with Image.open(buffer) as img:
                img.seek(0)
                img.load()
                input_format = img.format or "unknown"
                pixels = flatten(img.copy())
    except (
        UnidentifiedImageError,
        OSError,
        ValueError,
        SyntaxError,
        EOFError,
        Image.DecompressionBombError,
    ) as e:
        raise DecodeError(
            f"Failed to decode {source.name}: {str(e)}",
            details={"filename": source.name, "reason": str(e)[:200]},
        )

    logger.debug(
        "rasterized",
        filename=source.name,
        input_format=input_format,
        width=pixels.width,
        height=pixels.height,
    )
    return RasterImage(pixels=pixels, width=pixels.width, height=pixels.height)


async def rasterize_async(source: Source) -> RasterImage:
    """Run rasterize in the default executor so the loop stays responsive."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, rasterize, source)
