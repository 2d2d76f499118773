"""Tests for the animation compositor and raster primitives.

Uses the in-memory source_animation fixture: 3 frames of 16x16,
red / blue / green, durations 100 / 200 / 300 ms.
"""

import numpy as np
import pytest

from conftest import BLUE, GREEN, RED, SOURCE_COLORS, SOURCE_DURATIONS, alpha_at, make_frame, rgb_at
from gifcompose.compositor import canvas_size, composite, render_element
from gifcompose.raster import blit, crop, new_canvas, scale_nearest


def _element(**fields):
    element = {"frame": 0, "x": 0, "y": 0, "w": 0, "h": 0, "scale": 1, "pos_x": 0, "pos_y": 0}
    element.update(fields)
    return element


class TestRaster:
    def test_crop(self):
        assert crop(make_frame(RED), 2, 2, 4, 6).size == (4, 6)

    def test_crop_past_edge_is_transparent(self):
        img = crop(make_frame(RED), 12, 0, 8, 8)
        assert img.size == (8, 8)
        assert alpha_at(img, 7, 0) == 0
        assert alpha_at(img, 0, 0) == 255

    def test_scale_nearest_keeps_hard_edges(self):
        img = new_canvas(2, 1)
        blit(img, make_frame(RED, size=1), 0, 0)
        scaled = scale_nearest(img, 4)
        assert scaled.size == (8, 4)
        arr = np.asarray(scaled)
        # Only fully-opaque red or fully-transparent pixels, nothing blended.
        assert set(np.unique(arr[:, :, 3])) == {0, 255}
        assert (arr[:, :4, :3] == RED).all()

    def test_scale_never_below_one_pixel(self):
        assert scale_nearest(make_frame(RED, size=2), 0.1).size == (1, 1)

    def test_new_canvas_transparent_by_default(self):
        canvas = new_canvas(3, 2)
        assert canvas.mode == "RGBA"
        assert canvas.size == (3, 2)
        assert alpha_at(canvas, 0, 0) == 0

    def test_new_canvas_background(self):
        canvas = new_canvas(2, 2, background=GREEN)
        assert rgb_at(canvas, 1, 1) == GREEN
        assert alpha_at(canvas, 1, 1) == 255

    def test_blit_clips_negative_positions(self):
        canvas = new_canvas(4, 4)
        blit(canvas, make_frame(BLUE, size=4), -2, -2)
        assert rgb_at(canvas, 1, 1) == BLUE
        assert alpha_at(canvas, 3, 3) == 0


class TestRenderElement:
    def test_crop_and_scale(self):
        img = render_element(make_frame(RED), _element(w=4, h=4, scale=2))
        assert img.size == (8, 8)

    def test_zero_area_crop_means_full_frame(self):
        assert render_element(make_frame(RED), _element(w=5, h=0)).size == (16, 16)
        assert render_element(make_frame(RED), _element(w=0, h=5)).size == (16, 16)

    def test_scale_one_is_noop(self):
        frame = make_frame(RED)
        assert render_element(frame, _element()) is frame


class TestCanvasSize:
    def test_bounding_box(self):
        placed = [
            (_element(), make_frame(RED, size=10)),
            (_element(pos_x=8, pos_y=8), make_frame(BLUE, size=5)),
        ]
        assert canvas_size(placed) == (13, 13)

    def test_fractional_positions_round_up(self):
        placed = [(_element(pos_x=0.5, pos_y=1.25), make_frame(RED, size=2))]
        assert canvas_size(placed) == (3, 4)


class TestComposite:
    def test_crop_scale_end_to_end(self, source_animation):
        result = composite(source_animation, {"x": 0, "y": 0, "w": 4, "h": 4, "scale": 2})
        assert len(result["frames"]) == 3
        for i, frame in enumerate(result["frames"]):
            assert frame["image"].size == (8, 8)
            assert rgb_at(frame["image"], 7, 7) == SOURCE_COLORS[i]
            assert frame["info"] == source_animation["frames"][i]["info"]

    def test_use_frames_end_to_end(self, source_animation):
        result = composite(source_animation, {"frame": 0, "use_frames": [0, 1, 2, 0, 1]})
        assert len(result["frames"]) == 5
        colors = [rgb_at(f["image"], 0, 0) for f in result["frames"]]
        assert colors == [RED, BLUE, GREEN, RED, BLUE]
        durations = [f["info"]["duration"] for f in result["frames"]]
        assert durations == [100, 200, 300, 100, 200]

    def test_bounding_box_canvas(self, source_animation):
        recipe = {"w": 10, "h": 10, "blit_images": [{"pos_x": 8, "pos_y": 8, "w": 5, "h": 5}]}
        result = composite(source_animation, recipe)
        for frame in result["frames"]:
            assert frame["image"].size == (13, 13)

    def test_overlay_occludes_main(self, source_animation):
        recipe = {
            "frame": 0, "w": 4, "h": 4, "scale": 2,
            "blit_images": [{"frame": 1, "pos_x": 2, "pos_y": 2, "w": 2, "h": 2}],
        }
        img = composite(source_animation, recipe)["frames"][0]["image"]
        assert img.size == (8, 8)
        assert rgb_at(img, 3, 3) == RED
        # Overlay offset (2, 2) lands at (4, 4) under the root's 2x scale.
        assert rgb_at(img, 4, 4) == BLUE
        assert rgb_at(img, 7, 7) == BLUE

    def test_later_overlays_paint_over_earlier(self, source_animation):
        recipe = {
            "frame": 0, "w": 4, "h": 4,
            "blit_images": [
                {"frame": 1, "w": 2, "h": 2},
                {"frame": 2, "pos_x": 1, "pos_y": 1, "w": 2, "h": 2},
            ],
        }
        img = composite(source_animation, recipe)["frames"][0]["image"]
        assert rgb_at(img, 0, 0) == BLUE
        assert rgb_at(img, 1, 1) == GREEN
        assert rgb_at(img, 3, 3) == RED

    def test_uncovered_area_transparent(self, source_animation):
        recipe = {"w": 4, "h": 4, "blit_images": [{"pos_x": 6, "w": 2, "h": 2}]}
        img = composite(source_animation, recipe)["frames"][0]["image"]
        assert img.size == (8, 4)
        assert alpha_at(img, 5, 0) == 0

    def test_background_fills_uncovered_area(self, source_animation):
        recipe = {"w": 4, "h": 4, "blit_images": [{"pos_x": 6, "w": 2, "h": 2}]}
        img = composite(source_animation, recipe, background=(9, 9, 9))["frames"][0]["image"]
        assert rgb_at(img, 5, 0) == (9, 9, 9)
        assert alpha_at(img, 5, 0) == 255

    def test_main_frame_info_kept_overlay_info_dropped(self, source_animation):
        recipe = {"frame": 2, "blit_images": [{"frame": 0}]}
        result = composite(source_animation, recipe)
        for frame in result["frames"]:
            assert frame["info"]["duration"] == SOURCE_DURATIONS[2]

    def test_animation_info_copied(self, source_animation):
        result = composite(source_animation, {})
        assert result["info"] == source_animation["info"]
        assert result["info"] is not source_animation["info"]

    def test_source_not_modified(self, source_animation):
        before = [np.asarray(f["image"]).copy() for f in source_animation["frames"]]
        composite(source_animation, {"w": 4, "h": 4, "scale": 3, "blit_images": [{"pos_x": 1}]})
        for frame, arr in zip(source_animation["frames"], before):
            assert (np.asarray(frame["image"]) == arr).all()
            assert frame["image"].size == (16, 16)

    def test_empty_source_raises(self):
        with pytest.raises(ValueError, match="no frames"):
            composite({"frames": [], "info": {}}, {})
