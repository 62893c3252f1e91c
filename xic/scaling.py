from __future__ import annotations

import logging

from PIL import Image

from .aspect import round_px
from .errors import InvalidResolution
from .options import ResolutionSpec


logger = logging.getLogger(__name__)


def target_size(width: int, height: int, target: int) -> tuple[int, int]:
    """
    Size that puts `target` on the long axis and keeps the ratio.

    Portrait (height > width) pins the height, anything else pins the width.
    """
    if height > width:
        return round_px(width * target / height), target
    return target, round_px(height * target / width)


def apply_resolution(im: Image.Image, spec: ResolutionSpec, allow_upscale: bool = True) -> Image.Image:
    """
    Rescale so the long edge equals the requested pixel count.

    The target is a literal pixel count. When it is larger than the current
    long edge the image is enlarged unless allow_upscale=False.
    """
    if spec.is_original:
        return im

    target = spec.target
    if target is None or target <= 0:
        raise InvalidResolution(f"target resolution must be positive, got {target}")

    w, h = im.size
    if not allow_upscale and target >= max(w, h):
        return im

    new_w, new_h = target_size(w, h, target)
    if (new_w, new_h) == (w, h):
        return im

    logger.debug("Scaling %dx%d -> %dx%d", w, h, new_w, new_h)
    return im.resize((new_w, new_h), Image.Resampling.LANCZOS)
