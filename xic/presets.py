from __future__ import annotations

from dataclasses import replace
from fractions import Fraction
from typing import Sequence, Union

from .options import (
    ORIGINAL_ASPECT,
    ORIGINAL_RESOLUTION,
    AnchorPoint,
    AspectSpec,
    OutputFormat,
    ResolutionSpec,
    ScalingMode,
)
from .settings import ConvertSettings


# Presentation tables: label -> value. The core never looks at labels.
ASPECT_PRESETS: dict[str, AspectSpec] = {
    "Original": ORIGINAL_ASPECT,
    "1:1": AspectSpec(Fraction(1, 1)),
    "4:3": AspectSpec(Fraction(4, 3)),
    "16:9": AspectSpec(Fraction(16, 9)),
    "9:16": AspectSpec(Fraction(9, 16)),
    "3:2": AspectSpec(Fraction(3, 2)),
    "2:3": AspectSpec(Fraction(2, 3)),
    "2:1": AspectSpec(Fraction(2, 1)),
    "2.4:1": AspectSpec(Fraction(12, 5)),
}

RESOLUTION_PRESETS: dict[str, ResolutionSpec] = {
    "Original": ORIGINAL_RESOLUTION,
    "4K (3840)": ResolutionSpec(3840),
    "1080p (1920)": ResolutionSpec(1920),
    "2000px": ResolutionSpec(2000),
    "1000px": ResolutionSpec(1000),
    "500px": ResolutionSpec(500),
}

_RESOLUTION_ALIASES = {"4k": 3840, "1080p": 1920}


def parse_aspect(text: str) -> AspectSpec:
    """
    Accept either:
      - "original"
      - "1:1", "16:9", "2.4:1"
      - "1.7777"
    """
    t = text.strip()
    if t.lower() == "original":
        return ORIGINAL_ASPECT
    if ":" in t:
        a, b = t.split(":", 1)
        num = Fraction(a.strip())
        den = Fraction(b.strip())
        if den == 0:
            raise ValueError("ratio denominator cannot be 0")
        ratio = num / den
    else:
        ratio = Fraction(t)
    if ratio <= 0:
        raise ValueError(f"aspect ratio must be positive: {text!r}")
    return AspectSpec(ratio)


def parse_resolution(text: str) -> ResolutionSpec:
    """Accept "original", "4k", "1080p", "2000" or "2000px"."""
    t = text.strip().lower()
    if t == "original":
        return ORIGINAL_RESOLUTION
    if t in _RESOLUTION_ALIASES:
        return ResolutionSpec(_RESOLUTION_ALIASES[t])
    if t.endswith("px"):
        t = t[:-2]
    target = int(t)
    if target <= 0:
        raise ValueError(f"resolution must be positive: {text!r}")
    return ResolutionSpec(target)


def parse_anchor(value: Union[str, Sequence[float]]) -> AnchorPoint:
    """Accept "0.5,0.2" or a two-item sequence."""
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",")]
    else:
        parts = list(value)
    if len(parts) != 2:
        raise ValueError(f"anchor needs two values x,y: {value!r}")
    return AnchorPoint(float(parts[0]), float(parts[1]))


def apply_preset(name: str, base: ConvertSettings) -> ConvertSettings:
    name = name.lower()

    if name == "web":
        return replace(base,
                       output_format=OutputFormat.JPEG,
                       quality=0.8,
                       resolution=ResolutionSpec(2000),
                       allow_upscale=False)

    if name == "square":
        return replace(base,
                       aspect=AspectSpec(Fraction(1, 1)),
                       scaling_mode=ScalingMode.FILL,
                       resolution=ResolutionSpec(1000))

    if name == "wallpaper":
        return replace(base,
                       aspect=AspectSpec(Fraction(16, 9)),
                       scaling_mode=ScalingMode.FILL,
                       resolution=ResolutionSpec(3840),
                       remove_letterboxing=True)

    if name == "archive":
        return replace(base,
                       output_format=OutputFormat.TIFF,
                       aspect=ORIGINAL_ASPECT,
                       resolution=ORIGINAL_RESOLUTION)

    if name == "webp":
        return replace(base,
                       output_format=OutputFormat.WEBP,
                       quality=0.8,
                       webp_lossless=False)

    raise ValueError(f"Unknown preset: {name}")


PRESET_NAMES = ("web", "square", "wallpaper", "archive", "webp")
