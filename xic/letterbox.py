from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

from PIL import Image, ImageChops

from .errors import DetectionDegenerate


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.1


@dataclass(frozen=True)
class Margins:
    top: int
    bottom: int
    left: int
    right: int

    @property
    def is_empty(self) -> bool:
        return not (self.top or self.bottom or self.left or self.right)


def detect(im: Image.Image, threshold: float = DEFAULT_THRESHOLD) -> Optional[Margins]:
    """
    Find near-black bars along the four edges of an image.

    A row (or column) is a bar when every pixel has R, G and B below
    `threshold` on a 0..1 scale; alpha is ignored. Each edge is scanned
    inward and stops at the first line that is not a bar, so dark lines
    deeper in the picture never count.

    The scan is done in one pass: every channel is thresholded into a
    "bright" mask, the masks are OR-ed together and the bounding box of
    the result is exactly where the four prefix scans would stop.

    Returns None when no edge has a bar. An image with no bright pixel at
    all reports bars covering the whole image on every edge.
    """
    w, h = im.size
    rgb = im.convert("RGB")

    bright = [band.point(lambda v: 255 if v / 255.0 >= threshold else 0) for band in rgb.split()]
    mask = ImageChops.lighter(ImageChops.lighter(bright[0], bright[1]), bright[2])

    bbox = mask.getbbox()
    if bbox is None:
        margins = Margins(top=h, bottom=h, left=w, right=w)
    else:
        left, top, right, bottom = bbox
        margins = Margins(top=top, bottom=h - bottom, left=left, right=w - right)

    if margins.is_empty:
        return None

    logger.debug("Letterbox detected on %dx%d image: %s", w, h, margins)
    return margins


def remove(im: Image.Image, threshold: float = DEFAULT_THRESHOLD) -> Image.Image:
    """Crop detected letterbox bars. Identity when there are none."""
    margins = detect(im, threshold)
    if margins is None:
        return im

    w, h = im.size
    new_w = w - margins.left - margins.right
    new_h = h - margins.top - margins.bottom
    if new_w <= 0 or new_h <= 0:
        raise DetectionDegenerate(
            f"letterbox removal would leave a {max(new_w, 0)}x{max(new_h, 0)} image"
        )

    # Pillow boxes are top-left based: (left, top, right, bottom)
    return im.crop((margins.left, margins.top, margins.left + new_w, margins.top + new_h))
