"""Unit tests for rasterization and JPEG encoding."""

import io

import pytest
from PIL import Image

from imagebatch.core.conversion.encoder import (
    JpegConverter,
    encode,
    get_quality_params,
)
from imagebatch.core.conversion.rasterizer import RasterImage, rasterize, rasterize_async
from imagebatch.core.exceptions import DecodeError, EncodeError
from imagebatch.core.registry.models import Source


class TestRasterize:
    """Test decoding sources into opaque rasters."""

    def test_natural_dimensions(self, source_factory):
        raster = rasterize(source_factory(width=40, height=30))
        assert (raster.width, raster.height) == (40, 30)
        assert raster.pixels.mode == "RGB"

    def test_transparent_pixels_become_white(self, source_factory):
        source = source_factory(
            name="clear.png", format="PNG", mode="RGBA", color=(255, 0, 0, 0)
        )
        raster = rasterize(source)
        assert raster.pixels.getpixel((5, 5)) == (255, 255, 255)

    def test_opaque_pixels_are_kept(self, source_factory):
        source = source_factory(
            name="solid.png", format="PNG", mode="RGBA", color=(0, 0, 255, 255)
        )
        assert rasterize(source).pixels.getpixel((0, 0)) == (0, 0, 255)

    def test_palette_with_transparency(self):
        img = Image.new("P", (10, 10), 0)
        img.putpalette([0, 255, 0] * 256)
        buffer = io.BytesIO()
        img.save(buffer, format="PNG", transparency=0)

        raster = rasterize(Source(name="p.png", data=buffer.getvalue()))
        assert raster.pixels.getpixel((0, 0)) == (255, 255, 255)

    def test_grayscale_is_converted_to_rgb(self, source_factory):
        source = source_factory(name="g.png", format="PNG", mode="L", color=128)
        raster = rasterize(source)
        assert raster.pixels.mode == "RGB"
        assert raster.pixels.getpixel((0, 0)) == (128, 128, 128)

    def test_animated_input_uses_first_frame(self):
        frames = [Image.new("RGB", (8, 8), color) for color in ((255, 0, 0), (0, 0, 255))]
        buffer = io.BytesIO()
        frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:])

        raster = rasterize(Source(name="anim.gif", data=buffer.getvalue()))
        red, green, blue = raster.pixels.getpixel((4, 4))
        assert red > 200 and blue < 50

    def test_empty_data_raises(self, source_factory):
        with pytest.raises(DecodeError) as exc_info:
            rasterize(source_factory(data=b""))
        assert exc_info.value.error_code == "IB101"

    def test_garbage_raises(self, source_factory):
        with pytest.raises(DecodeError) as exc_info:
            rasterize(source_factory(name="bad.webp", data=b"not an image at all"))
        assert exc_info.value.details["filename"] == "bad.webp"

    def test_deterministic(self, source_factory):
        source = source_factory(width=16, height=16, color=(10, 20, 30))
        assert rasterize(source).pixels.tobytes() == rasterize(source).pixels.tobytes()

    @pytest.mark.asyncio
    async def test_rasterize_async(self, source_factory):
        raster = await rasterize_async(source_factory(width=12, height=7))
        assert (raster.width, raster.height) == (12, 7)


class TestEncode:
    """Test JPEG re-encoding."""

    @pytest.fixture
    def raster(self):
        pixels = Image.new("RGB", (20, 10), (0, 128, 255))
        return RasterImage(pixels=pixels, width=20, height=10)

    def test_encode_produces_jpeg(self, raster):
        data = encode(raster)
        assert data[:3] == b"\xff\xd8\xff"
        with Image.open(io.BytesIO(data)) as img:
            assert img.format == "JPEG"
            assert img.size == (20, 10)

    def test_quality_mapping(self):
        assert get_quality_params(0.8) == {"quality": 76, "subsampling": 2}
        assert get_quality_params(0.9)["subsampling"] == 2
        assert get_quality_params(0.95) == {"quality": 90, "subsampling": 0}
        assert get_quality_params(1.0)["quality"] == 95
        assert get_quality_params(0.0)["quality"] == 1

    def test_higher_quality_is_larger(self):
        noisy = Image.effect_noise((64, 64), 80).convert("RGB")
        raster = RasterImage(pixels=noisy, width=64, height=64)
        assert len(encode(raster, quality=1.0)) > len(encode(raster, quality=0.1))

    def test_out_of_range_quality_raises(self, raster):
        with pytest.raises(EncodeError) as exc_info:
            encode(raster, quality=1.5)
        assert exc_info.value.error_code == "IB102"

    def test_unknown_format_raises(self, raster):
        with pytest.raises(EncodeError):
            encode(raster, format="NOT-A-FORMAT")


class TestJpegConverter:
    """Test the per-item converter."""

    @pytest.mark.asyncio
    async def test_convert_webp(self, source_factory):
        converter = JpegConverter(quality=0.9)
        output = await converter.convert(source_factory(width=30, height=20))

        with Image.open(io.BytesIO(output)) as img:
            assert img.format == "JPEG"
            assert img.size == (30, 20)

    @pytest.mark.asyncio
    async def test_convert_corrupt_raises(self, source_factory):
        with pytest.raises(DecodeError):
            await JpegConverter().convert(source_factory(data=b"definitely not an image"))

    def test_default_quality_from_settings(self):
        assert JpegConverter().quality == 0.9
