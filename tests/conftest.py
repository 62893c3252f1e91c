"""Shared test fixtures for xic tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from xic.settings import ConvertSettings


def solid(size: tuple[int, int], color=(200, 120, 40, 255)) -> Image.Image:
    """Plain RGBA image of one color."""
    return Image.new("RGBA", size, color)


def letterboxed(size: tuple[int, int], top: int = 0, bottom: int = 0, left: int = 0, right: int = 0,
                color=(200, 120, 40, 255)) -> Image.Image:
    """Image with black bars of the given thickness around a colored picture."""
    w, h = size
    im = Image.new("RGBA", size, (0, 0, 0, 255))
    inner = Image.new("RGBA", (w - left - right, h - top - bottom), color)
    im.paste(inner, (left, top))
    return im


@pytest.fixture
def src_dir(tmp_path: Path) -> Path:
    d = tmp_path / "src"
    d.mkdir()
    return d


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def write_png(src_dir: Path):
    """Factory: save an image as PNG in the source folder and return its path."""

    def _write(name: str, im: Image.Image) -> Path:
        path = src_dir / name
        im.save(path, format="PNG")
        return path

    return _write


@pytest.fixture
def settings(out_dir: Path) -> ConvertSettings:
    return ConvertSettings(output_dir=out_dir)
