from __future__ import annotations

import logging
import math

from PIL import Image

from .errors import InvalidAspect
from .options import CENTER, AnchorPoint, AspectSpec, Origin, ScalingMode


logger = logging.getLogger(__name__)

TRANSPARENT = (0, 0, 0, 0)


def round_px(value: float) -> int:
    """Round half-up to a whole pixel count, never below 1."""
    return max(1, int(math.floor(value + 0.5)))


def ui_to_buffer_anchor(anchor: AnchorPoint, origin: Origin = Origin.TOP_LEFT) -> AnchorPoint:
    """
    Convert a UI-space anchor into the coordinate space of a pixel buffer.

    In the UI, y=0 is the top of the displayed image. In a top-left buffer
    that is row 0, so nothing changes. In a bottom-left buffer the top of
    the picture is the last row, so y is flipped.
    """
    if origin is Origin.BOTTOM_LEFT:
        return AnchorPoint(anchor.x, 1.0 - anchor.y)
    return anchor


def matches_ratio(width: int, height: int, ratio: float) -> bool:
    """True if width/height is already `ratio` to within one pixel."""
    return round_px(height * ratio) == width or round_px(width / ratio) == height


def apply_aspect(
    im: Image.Image,
    aspect: AspectSpec,
    mode: ScalingMode = ScalingMode.FILL,
    anchor: AnchorPoint = CENTER,
    fill: tuple[int, int, int, int] = TRANSPARENT,
    origin: Origin = Origin.TOP_LEFT,
) -> Image.Image:
    """
    Crop (FILL) or pad (FIT) an image to the requested aspect ratio.

    FILL keeps the largest window of the target ratio, positioned along the
    cropped axis by the anchor. FIT scales the whole source down onto a
    canvas of the target ratio and centers it; `fill` colors the margins.
    """
    if aspect.is_original:
        return im

    ratio = float(aspect.ratio)
    if not ratio > 0:
        raise InvalidAspect(f"aspect ratio must be positive, got {aspect.ratio}")

    w, h = im.size
    if matches_ratio(w, h, ratio):
        return im

    if mode is ScalingMode.FIT:
        return _fit(im, ratio, fill)
    return _fill(im, ratio, ui_to_buffer_anchor(anchor, origin))


def _fill(im: Image.Image, ratio: float, anchor: AnchorPoint) -> Image.Image:
    w, h = im.size

    if w / h > ratio:
        # Too wide -> narrow the width, slide horizontally
        new_w = min(w, round_px(h * ratio))
        left = _offset(w - new_w, anchor.x)
        box = (left, 0, left + new_w, h)
    else:
        # Too tall -> shorten the height, slide vertically
        new_h = min(h, round_px(w / ratio))
        top = _offset(h - new_h, anchor.y)
        box = (0, top, w, top + new_h)

    logger.debug("Fill crop %dx%d -> box %s", w, h, box)
    return im.crop(box)


def _fit(im: Image.Image, ratio: float, fill: tuple[int, int, int, int]) -> Image.Image:
    w, h = im.size

    # Canvas is constrained by the source so content is only ever shrunk
    if w / h > ratio:
        canvas_w, canvas_h = round_px(h * ratio), h
    else:
        canvas_w, canvas_h = w, round_px(w / ratio)

    scale = min(canvas_w / w, canvas_h / h, 1.0)
    content_w = min(canvas_w, round_px(w * scale))
    content_h = min(canvas_h, round_px(h * scale))

    content = im.convert("RGBA")
    if (content_w, content_h) != (w, h):
        content = content.resize((content_w, content_h), Image.Resampling.LANCZOS)

    canvas = Image.new("RGBA", (canvas_w, canvas_h), fill)
    offset = ((canvas_w - content_w) // 2, (canvas_h - content_h) // 2)
    canvas.paste(content, offset)

    logger.debug("Fit %dx%d -> canvas %dx%d, content %dx%d at %s",
                 w, h, canvas_w, canvas_h, content_w, content_h, offset)
    return canvas


def _offset(slack: int, fraction: float) -> int:
    return min(slack, max(0, int(math.floor(slack * fraction + 0.5))))
