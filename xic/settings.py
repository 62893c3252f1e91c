from __future__ import annotations

from dataclasses import dataclass, field, fields
import json
from pathlib import Path
from typing import Any, Mapping, Union

from .collisions import CollisionPolicy
from .letterbox import DEFAULT_THRESHOLD
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


@dataclass(frozen=True)
class ConvertSettings:
    """
    All user-configurable knobs for one batch.

    Pure data, passed explicitly into the orchestrator:
    - nothing is kept in module-level state
    - easy to save/load (JSON)
    - the same object is shared read-only by every job
    """

    # ----- Output handling -----
    output_dir: Path
    output_format: OutputFormat = OutputFormat.JPEG
    suffix: str = ""  # e.g. photo.png -> photo<suffix>.jpg
    collision_policy: CollisionPolicy = CollisionPolicy.VERSION

    # ----- Encoding -----
    quality: float = 0.8  # 0.0-1.0, JPEG/WebP/HEIC only
    webp_lossless: bool = False
    # Used when an alpha image goes into a format without alpha
    background: tuple[int, int, int] = (0, 0, 0)

    # ----- Letterbox -----
    remove_letterboxing: bool = False
    letterbox_threshold: float = DEFAULT_THRESHOLD

    # ----- Aspect -----
    aspect: AspectSpec = ORIGINAL_ASPECT
    scaling_mode: ScalingMode = ScalingMode.FILL
    # Per-file Fill anchors, keyed by full path or bare file name
    anchors: Mapping[str, AnchorPoint] = field(default_factory=dict)

    # ----- Resolution -----
    resolution: ResolutionSpec = ORIGINAL_RESOLUTION
    allow_upscale: bool = True

    # ----- Batch -----
    recursive: bool = True
    max_workers: int = 1

    def __post_init__(self) -> None:
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError(f"quality must be within 0.0-1.0, got {self.quality}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if not 0.0 < self.letterbox_threshold <= 1.0:
            raise ValueError(f"letterbox_threshold must be within (0, 1], got {self.letterbox_threshold}")

    def anchor_for(self, path: Path) -> AnchorPoint:
        path = Path(path)
        for key in (str(path), str(path.resolve()), path.name):
            if key in self.anchors:
                return self.anchors[key]
        return CENTER

    def output_path_for(self, src_path: Path) -> Path:
        return Path(self.output_dir) / f"{Path(src_path).stem}{self.suffix}{self.output_format.extension}"


def settings_from_dict(data: Mapping[str, Any], **overrides: Any) -> ConvertSettings:
    """Build settings from plain JSON-style values (strings, numbers, lists)."""
    from .presets import parse_anchor, parse_aspect, parse_resolution

    raw = {**data, **{k: v for k, v in overrides.items() if v is not None}}
    known = {f.name for f in fields(ConvertSettings)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")
    if "output_dir" not in raw:
        raise ValueError("output_dir is required")

    kw: dict[str, Any] = dict(raw)
    kw["output_dir"] = Path(raw["output_dir"])

    for name, enum_cls in (("output_format", OutputFormat),
                           ("collision_policy", CollisionPolicy),
                           ("scaling_mode", ScalingMode)):
        if name in raw and not isinstance(raw[name], enum_cls):
            kw[name] = enum_cls(str(raw[name]).lower())
    if "aspect" in raw and not isinstance(raw["aspect"], AspectSpec):
        kw["aspect"] = parse_aspect(str(raw["aspect"]))
    if "resolution" in raw and not isinstance(raw["resolution"], ResolutionSpec):
        kw["resolution"] = parse_resolution(str(raw["resolution"]))
    if "background" in raw:
        kw["background"] = tuple(int(c) for c in raw["background"])
    if "anchors" in raw:
        kw["anchors"] = {
            str(name): a if isinstance(a, AnchorPoint) else parse_anchor(a)
            for name, a in dict(raw["anchors"]).items()
        }
    if "quality" in raw:
        kw["quality"] = float(raw["quality"])

    return ConvertSettings(**kw)


def load_settings(path: Union[str, Path], **overrides: Any) -> ConvertSettings:
    """Read settings from a JSON file; non-None keyword overrides win."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return settings_from_dict(data, **overrides)


def settings_to_dict(s: ConvertSettings) -> dict[str, Any]:
    return {
        "output_dir": str(s.output_dir),
        "output_format": s.output_format.value,
        "suffix": s.suffix,
        "collision_policy": s.collision_policy.value,
        "quality": s.quality,
        "webp_lossless": s.webp_lossless,
        "background": list(s.background),
        "remove_letterboxing": s.remove_letterboxing,
        "letterbox_threshold": s.letterbox_threshold,
        "aspect": str(s.aspect),
        "scaling_mode": s.scaling_mode.value,
        "anchors": {k: [a.x, a.y] for k, a in s.anchors.items()},
        "resolution": "original" if s.resolution.is_original else str(s.resolution.target),
        "allow_upscale": s.allow_upscale,
        "recursive": s.recursive,
        "max_workers": s.max_workers,
    }
