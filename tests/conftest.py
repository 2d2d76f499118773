"""Shared test fixtures for gifcompose tests."""

import numpy as np
import pytest
from PIL import Image

RED = (255, 0, 0)
BLUE = (0, 0, 255)
GREEN = (0, 255, 0)

# One distinct color and duration per source frame.
SOURCE_COLORS = [RED, BLUE, GREEN]
SOURCE_DURATIONS = [100, 200, 300]


def make_frame(color, size=16):
    """Create an opaque solid-color RGBA frame."""
    arr = np.full((size, size, 4), (*color, 255), dtype=np.uint8)
    return Image.fromarray(arr)


def rgb_at(img, x, y):
    """RGB of one pixel as a tuple."""
    return tuple(int(c) for c in np.asarray(img)[y, x, :3])


def alpha_at(img, x, y):
    return int(np.asarray(img)[y, x, 3])


@pytest.fixture
def source_animation():
    """In-memory 3-frame animation (16x16, red/blue/green)."""
    return {
        "frames": [
            {"image": make_frame(color), "info": {"duration": dur, "disposal": 2}}
            for color, dur in zip(SOURCE_COLORS, SOURCE_DURATIONS)
        ],
        "info": {"loop": 0},
    }


@pytest.fixture
def source_gif(tmp_path):
    """Write the same 3-frame animation as a GIF file and return its path."""
    out = tmp_path / "sprites" / "source.gif"
    out.parent.mkdir()
    images = [make_frame(color) for color in SOURCE_COLORS]
    images[0].save(
        out,
        save_all=True,
        append_images=images[1:],
        duration=SOURCE_DURATIONS,
        loop=0,
    )
    return out
