from __future__ import annotations

from io import BytesIO
import logging

from PIL import Image
import pillow_heif

from .errors import EncodeError
from .options import OutputFormat


logger = logging.getLogger(__name__)

# Registers the HEIF plugin with Pillow (read + write)
pillow_heif.register_heif_opener()

BLACK = (0, 0, 0)


def encode(
    im: Image.Image,
    output_format: OutputFormat,
    quality: float = 0.8,
    *,
    lossless: bool = False,
    background: tuple[int, int, int] = BLACK,
) -> bytes:
    """
    Encode an image into the bytes of the requested container.

    quality is on a 0.0-1.0 scale and only used by JPEG, WebP and HEIC.
    Raises EncodeError for anything the codec rejects.
    """
    output_format = OutputFormat(output_format)
    prepared = _prepare(im, output_format, background)
    save_kwargs = _build_save_kwargs(output_format, quality, lossless)

    buf = BytesIO()
    try:
        prepared.save(buf, format=output_format.pillow_format, **save_kwargs)
    except (OSError, ValueError, KeyError, TypeError) as ex:
        raise EncodeError(output_format.value, str(ex) or type(ex).__name__) from ex

    data = buf.getvalue()
    logger.debug("Encoded %dx%d as %s (%d bytes)", prepared.width, prepared.height, output_format.value, len(data))
    return data


def quality_percent(quality: float) -> int:
    """Map 0.0-1.0 onto the 0-100 scale the codecs expect."""
    q = min(1.0, max(0.0, float(quality)))
    return int(round(q * 100))


def _prepare(im: Image.Image, fmt: OutputFormat, background: tuple[int, int, int]) -> Image.Image:
    if fmt in (OutputFormat.JPEG, OutputFormat.PNG):
        rgba = _rasterize(im)
        if fmt is OutputFormat.JPEG:
            return _flatten_alpha(rgba, background)
        return rgba

    if fmt is OutputFormat.TIFF:
        return im.convert("RGBA")

    if fmt is OutputFormat.WEBP:
        # Alpha is dropped, not composited
        return im.convert("RGB")

    # HEIC container here carries no alpha: force onto opaque black
    return _flatten_alpha(im.convert("RGBA"), BLACK)


def _rasterize(im: Image.Image) -> Image.Image:
    """Redraw into a fresh 8-bit RGBA buffer of the same size."""
    canvas = Image.new("RGBA", im.size, (0, 0, 0, 0))
    canvas.paste(im.convert("RGBA"), (0, 0))
    return canvas


def _flatten_alpha(rgba: Image.Image, background_rgb: tuple[int, int, int]) -> Image.Image:
    bg = Image.new("RGBA", rgba.size, tuple(background_rgb) + (255,))
    comp = Image.alpha_composite(bg, rgba)
    return comp.convert("RGB")


def _build_save_kwargs(fmt: OutputFormat, quality: float, lossless: bool) -> dict:
    kwargs: dict = {}

    if fmt is OutputFormat.JPEG:
        kwargs["quality"] = quality_percent(quality)
        kwargs["optimize"] = True

    elif fmt is OutputFormat.PNG:
        kwargs["compress_level"] = 6

    elif fmt is OutputFormat.WEBP:
        kwargs["quality"] = quality_percent(quality)
        kwargs["lossless"] = bool(lossless)
        kwargs["method"] = 4

    elif fmt is OutputFormat.HEIC:
        kwargs["quality"] = quality_percent(quality)

    return kwargs
