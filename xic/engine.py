from __future__ import annotations

from dataclasses import dataclass
import errno
import logging
import os
from pathlib import Path
import tempfile

from PIL import Image, ImageOps, UnidentifiedImageError

from . import letterbox
from .aspect import TRANSPARENT, apply_aspect
from .encoders import encode
from .errors import DecodeError, WriteError
from .options import (
    CENTER,
    ORIGINAL_ASPECT,
    ORIGINAL_RESOLUTION,
    AnchorPoint,
    AspectSpec,
    OutputFormat,
    ResolutionSpec,
    ScalingMode,
)
from .results import JobResult
from .scaling import apply_resolution


logger = logging.getLogger(__name__)

SUPPORTED_EXTS = {
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff", ".tif",
    ".heic", ".heif", ".webp", ".psd", ".jp2", ".j2k", ".jpx",
}


@dataclass(frozen=True)
class ConversionJob:
    source: Path
    output: Path
    aspect: AspectSpec = ORIGINAL_ASPECT
    scaling_mode: ScalingMode = ScalingMode.FILL
    anchor: AnchorPoint = CENTER
    resolution: ResolutionSpec = ORIGINAL_RESOLUTION
    output_format: OutputFormat = OutputFormat.JPEG
    quality: float = 0.8
    remove_letterboxing: bool = False

    # Execution details
    replace_existing: bool = False
    webp_lossless: bool = False
    allow_upscale: bool = True
    letterbox_threshold: float = letterbox.DEFAULT_THRESHOLD
    background: tuple[int, int, int] = (0, 0, 0)


def convert_file(job: ConversionJob) -> JobResult:
    """
    Run one job end to end: decode, transform, encode, write.

    Raises ConversionError subclasses; the batch layer turns them into
    recorded failures.
    """
    im = decode_image(job.source)
    im = transform_image(im, job)
    data = encode(
        im,
        job.output_format,
        job.quality,
        lossless=job.webp_lossless,
        background=job.background,
    )
    write_output(data, job.output, replace_existing=job.replace_existing)

    logger.info("Converted %s -> %s", job.source.name, job.output.name)
    return JobResult(source=job.source, output=job.output, replaced=job.replace_existing)


def decode_image(src_path: Path) -> Image.Image:
    src_path = Path(src_path)
    try:
        with Image.open(src_path) as im:
            im.load()
            # Auto-orient before anything looks at width/height
            im = ImageOps.exif_transpose(im)
            return im.convert("RGBA")
    except (FileNotFoundError, IsADirectoryError) as ex:
        raise DecodeError(f"Failed to load image: {src_path.name} (not found)", src_path) from ex
    except UnidentifiedImageError as ex:
        raise DecodeError(f"Failed to load image: {src_path.name} (unrecognized format)", src_path) from ex
    except (OSError, ValueError, Image.DecompressionBombError) as ex:
        raise DecodeError(f"Failed to load image: {src_path.name} ({ex})", src_path) from ex


def transform_image(im: Image.Image, job: ConversionJob) -> Image.Image:
    """Letterbox removal -> aspect -> resolution, each stage optional."""
    w0, h0 = im.size

    if job.remove_letterboxing:
        im = letterbox.remove(im, job.letterbox_threshold)

    if not job.aspect.is_original:
        fill = TRANSPARENT if job.output_format.supports_alpha else (0, 0, 0, 255)
        im = apply_aspect(im, job.aspect, job.scaling_mode, job.anchor, fill=fill)

    if not job.resolution.is_original:
        im = apply_resolution(im, job.resolution, allow_upscale=job.allow_upscale)

    logger.debug("%s: %dx%d -> %dx%d", job.source.name, w0, h0, im.width, im.height)
    return im


def write_output(data: bytes, out_path: Path, replace_existing: bool = False) -> None:
    out_path = Path(out_path)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = _save_to_temp(data, out_path)
    except OSError as ex:
        raise WriteError(f"Error saving {out_path.name}: {ex.strerror or ex}", out_path) from ex

    try:
        _finalize_output(tmp_path, out_path, overwrite=replace_existing)
    except OSError as ex:
        tmp_path.unlink(missing_ok=True)
        raise WriteError(f"Error saving {out_path.name}: {ex.strerror or ex}", out_path) from ex


def _save_to_temp(data: bytes, out_path: Path) -> Path:
    # Create temp file in output dir so move/rename is cheap
    fd, tmp_name = tempfile.mkstemp(prefix=".xic_", suffix=out_path.suffix, dir=str(out_path.parent))
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return Path(tmp_name)


def _finalize_output(tmp_path: Path, out_path: Path, overwrite: bool) -> None:
    if out_path.exists():
        if not overwrite:
            # Appeared after the collision scan
            raise FileExistsError(errno.EEXIST, "file already exists", str(out_path))
        out_path.unlink()
    tmp_path.replace(out_path)
