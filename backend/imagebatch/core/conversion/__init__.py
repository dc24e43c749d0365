"""Image decoding and re-encoding."""

from .encoder import JpegConverter, encode, encode_async
from .rasterizer import RasterImage, rasterize, rasterize_async

__all__ = [
    "JpegConverter",
    "RasterImage",
    "encode",
    "encode_async",
    "rasterize",
    "rasterize_async",
]
