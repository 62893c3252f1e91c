from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Optional


class ScalingMode(str, Enum):
    FILL = "fill"  # crop to the target ratio
    FIT = "fit"    # pad to the target ratio, content fully visible


class Origin(Enum):
    """Where row 0 of a pixel buffer sits."""

    TOP_LEFT = "top-left"        # Pillow, PNG, JPEG
    BOTTOM_LEFT = "bottom-left"  # Quartz / OpenGL style buffers


class OutputFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    TIFF = "tiff"
    WEBP = "webp"
    HEIC = "heic"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def pillow_format(self) -> str:
        # Pillow chooses the encoder by format=..., not by extension
        return "HEIF" if self is OutputFormat.HEIC else self.value.upper()

    @property
    def accepts_quality(self) -> bool:
        return self in (OutputFormat.JPEG, OutputFormat.WEBP, OutputFormat.HEIC)

    @property
    def supports_alpha(self) -> bool:
        return self in (OutputFormat.PNG, OutputFormat.TIFF)


_EXTENSIONS = {
    OutputFormat.JPEG: ".jpg",
    OutputFormat.PNG: ".png",
    OutputFormat.TIFF: ".tiff",
    OutputFormat.WEBP: ".webp",
    OutputFormat.HEIC: ".heic",
}


@dataclass(frozen=True)
class AnchorPoint:
    """
    Normalized point in UI space choosing which part of a Fill crop survives.

    (0, 0) is the top-left of the image as displayed, (1, 1) the bottom-right.
    """

    x: float = 0.5
    y: float = 0.5

    def __post_init__(self) -> None:
        if not (0.0 <= self.x <= 1.0 and 0.0 <= self.y <= 1.0):
            raise ValueError(f"anchor must lie in [0,1]x[0,1], got ({self.x}, {self.y})")


CENTER = AnchorPoint()


@dataclass(frozen=True)
class AspectSpec:
    """Target width/height ratio. ratio=None keeps the source ratio."""

    ratio: Optional[Fraction] = None

    @property
    def is_original(self) -> bool:
        return self.ratio is None

    def __str__(self) -> str:
        if self.ratio is None:
            return "original"
        return f"{self.ratio.numerator}:{self.ratio.denominator}"


@dataclass(frozen=True)
class ResolutionSpec:
    """Target long-edge pixel count. target=None keeps the source size."""

    target: Optional[int] = None

    @property
    def is_original(self) -> bool:
        return self.target is None

    def __str__(self) -> str:
        return "original" if self.target is None else f"{self.target}px"


ORIGINAL_ASPECT = AspectSpec()
ORIGINAL_RESOLUTION = ResolutionSpec()
