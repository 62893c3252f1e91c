"""Unit tests for the format encoder dispatcher."""

from io import BytesIO

import pytest
from PIL import Image

from conftest import solid
from xic.encoders import encode, quality_percent
from xic.errors import EncodeError
from xic.options import OutputFormat


def _decode(data: bytes) -> Image.Image:
    im = Image.open(BytesIO(data))
    im.load()
    return im


class TestOutputFormat:
    def test_capabilities(self):
        assert OutputFormat.PNG.supports_alpha and OutputFormat.TIFF.supports_alpha
        assert not OutputFormat.JPEG.supports_alpha
        assert not OutputFormat.WEBP.supports_alpha
        assert OutputFormat.JPEG.accepts_quality and OutputFormat.WEBP.accepts_quality
        assert not OutputFormat.PNG.accepts_quality and not OutputFormat.TIFF.accepts_quality

    def test_extensions(self):
        assert [f.extension for f in OutputFormat] == [".jpg", ".png", ".tiff", ".webp", ".heic"]


class TestEncode:
    def test_jpeg_is_rgb_and_sized(self):
        im = encode(solid((33, 17)), OutputFormat.JPEG, 0.9)

        out = _decode(im)
        assert out.format == "JPEG"
        assert out.mode == "RGB"
        assert out.size == (33, 17)

    def test_png_keeps_odd_dimensions(self):
        out = _decode(encode(solid((33, 17)), OutputFormat.PNG))

        assert out.size == (33, 17)

    def test_jpeg_flattens_transparency_on_background(self):
        data = encode(Image.new("RGBA", (8, 8), (0, 0, 0, 0)), OutputFormat.JPEG, 1.0, background=(255, 255, 255))

        r, g, b = _decode(data).getpixel((4, 4))
        assert min(r, g, b) > 245

    def test_jpeg_quality_changes_size(self):
        im = Image.effect_noise((128, 128), 64).convert("RGBA")

        low = encode(im, OutputFormat.JPEG, 0.1)
        high = encode(im, OutputFormat.JPEG, 0.95)

        assert len(low) < len(high)

    def test_png_keeps_alpha(self):
        im = Image.new("RGBA", (10, 10), (10, 20, 30, 40))

        out = _decode(encode(im, OutputFormat.PNG))

        assert out.mode == "RGBA"
        assert out.getpixel((5, 5)) == (10, 20, 30, 40)

    def test_png_ignores_quality(self):
        im = solid((20, 20))

        assert encode(im, OutputFormat.PNG, 0.1) == encode(im, OutputFormat.PNG, 0.9)

    def test_tiff_is_lossless_rgba(self):
        im = Image.new("RGBA", (6, 4), (1, 2, 3, 4))

        out = _decode(encode(im, OutputFormat.TIFF))

        assert out.format == "TIFF"
        assert out.convert("RGBA").getpixel((0, 0)) == (1, 2, 3, 4)

    def test_webp_drops_alpha(self):
        out = _decode(encode(solid((16, 16)), OutputFormat.WEBP, 0.8))

        assert out.format == "WEBP"
        assert out.mode == "RGB"

    def test_webp_lossless(self):
        im = Image.new("RGBA", (16, 16), (12, 200, 99, 255))

        out = _decode(encode(im, OutputFormat.WEBP, lossless=True))

        assert out.getpixel((3, 3)) == (12, 200, 99)

    def test_heic_container(self):
        data = encode(solid((64, 64)), OutputFormat.HEIC, 0.7)

        assert data[4:8] == b"ftyp"

    def test_accepts_string_format(self):
        assert encode(solid((4, 4)), "png")[:8] == b"\x89PNG\r\n\x1a\n"

    def test_codec_failure_is_encode_error(self, monkeypatch):
        def broken_save(self, fp, format=None, **params):
            raise OSError("encoder error -2")

        monkeypatch.setattr(Image.Image, "save", broken_save)

        with pytest.raises(EncodeError) as exc_info:
            encode(solid((4, 4)), OutputFormat.WEBP)

        assert exc_info.value.format == "webp"
        assert exc_info.value.kind == "encode"


class TestQualityPercent:
    @pytest.mark.parametrize("q, expected", [(0.0, 0), (0.8, 80), (1.0, 100), (1.7, 100), (-1, 0), (0.25, 25)])
    def test_mapping(self, q, expected):
        assert quality_percent(q) == expected
