"""Unit tests for the resolution scaler."""

import pytest

from conftest import solid
from xic.errors import InvalidResolution
from xic.options import ResolutionSpec
from xic.scaling import apply_resolution, target_size


class TestTargetSize:
    def test_landscape_pins_width(self):
        assert target_size(400, 200, 100) == (100, 50)

    def test_portrait_pins_height(self):
        assert target_size(200, 400, 100) == (50, 100)

    def test_square_counts_as_landscape(self):
        assert target_size(300, 300, 120) == (120, 120)

    def test_rounds_half_up(self):
        # 200 * 100 / 300 = 66.67
        assert target_size(300, 200, 100) == (100, 67)
        # 50 * 9 / 100 = 4.5
        assert target_size(100, 50, 9) == (9, 5)

    def test_never_zero(self):
        assert target_size(1000, 1, 10) == (10, 1)


class TestApplyResolution:
    def test_original_is_noop(self):
        im = solid((64, 32))

        assert apply_resolution(im, ResolutionSpec()) is im

    def test_landscape_literal_target(self):
        out = apply_resolution(solid((4000, 3000)), ResolutionSpec(1000))

        assert out.size == (1000, 750)

    def test_portrait_literal_target(self):
        out = apply_resolution(solid((3000, 4000)), ResolutionSpec(500))

        assert out.size == (375, 500)

    def test_upscales_by_default(self):
        out = apply_resolution(solid((100, 50)), ResolutionSpec(400))

        assert out.size == (400, 200)

    def test_upscale_can_be_disabled(self):
        im = solid((100, 50))

        assert apply_resolution(im, ResolutionSpec(400), allow_upscale=False) is im

    def test_already_at_target(self):
        im = solid((500, 250))

        assert apply_resolution(im, ResolutionSpec(500)) is im

    @pytest.mark.parametrize("target", [0, -10])
    def test_non_positive_target(self, target):
        with pytest.raises(InvalidResolution):
            apply_resolution(solid((10, 10)), ResolutionSpec(target))
