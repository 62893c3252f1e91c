"""Unit tests for letterbox detection and removal."""

import pytest
from PIL import Image

from conftest import letterboxed, solid
from xic.errors import DetectionDegenerate
from xic.letterbox import Margins, detect, remove


class TestDetect:
    def test_no_border_returns_none(self):
        assert detect(solid((64, 48))) is None

    def test_top_bottom_band_height(self):
        im = letterboxed((160, 90), top=12, bottom=12)

        assert detect(im) == Margins(top=12, bottom=12, left=0, right=0)

    def test_uneven_pillarbox(self):
        im = letterboxed((100, 50), left=7, right=3)

        assert detect(im) == Margins(top=0, bottom=0, left=7, right=3)

    def test_dark_row_inside_picture_is_ignored(self):
        im = letterboxed((80, 60), top=5)
        # A black line deeper in the picture, after a bright row
        for x in range(80):
            im.putpixel((x, 30), (0, 0, 0, 255))

        assert detect(im) == Margins(top=5, bottom=0, left=0, right=0)

    def test_near_black_counts_as_bar(self):
        im = letterboxed((40, 40), top=4)
        for x in range(40):
            im.putpixel((x, 0), (20, 20, 20, 255))  # 20/255 < 0.1

        assert detect(im).top == 4

    def test_threshold_is_respected(self):
        im = Image.new("RGBA", (20, 20), (30, 30, 30, 255))
        im.paste(solid((20, 16)), (0, 4))

        assert detect(im, threshold=0.1) is None
        assert detect(im, threshold=0.2) == Margins(top=4, bottom=0, left=0, right=0)

    def test_alpha_is_ignored(self):
        im = letterboxed((30, 30), bottom=6)
        for x in range(30):
            for y in range(24, 30):
                im.putpixel((x, y), (0, 0, 0, 0))

        assert detect(im).bottom == 6

    def test_single_pixel(self):
        assert detect(solid((1, 1))) is None
        assert detect(Image.new("RGBA", (1, 1), (0, 0, 0, 255))) == Margins(1, 1, 1, 1)

    def test_all_black_covers_everything(self):
        m = detect(Image.new("RGBA", (10, 6), (0, 0, 0, 255)))

        assert m == Margins(top=6, bottom=6, left=10, right=10)


class TestRemove:
    def test_identity_without_bars(self):
        im = solid((50, 40))

        assert remove(im) is im

    def test_crops_bars(self):
        im = letterboxed((120, 80), top=10, bottom=6, left=4, right=2)

        out = remove(im)

        assert out.size == (114, 64)
        assert detect(out) is None
        assert out.getpixel((0, 0)) == (200, 120, 40, 255)

    def test_does_not_touch_input(self):
        im = letterboxed((40, 40), top=5)

        remove(im)

        assert im.size == (40, 40)

    def test_all_black_is_degenerate(self):
        with pytest.raises(DetectionDegenerate):
            remove(Image.new("RGBA", (32, 18), (0, 0, 0, 255)))
