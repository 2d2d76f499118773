#!/usr/bin/env python3
"""Generate a synthetic sprite animation for the gifcompose demo manifest.

Creates examples/demo-sprites/hero.gif: 4 frames of 32x32 pixel art.
Each frame has a distinct body color and a white marker that moves one
quadrant per frame, so frame selection and crops are easy to eyeball.

Usage:
    python examples/generate_demo_sprites.py
    # Then render:
    gifcompose compose --manifest examples/demo.yaml
"""

from pathlib import Path

import numpy as np
from PIL import Image

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-sprites"
SIZE = 32

# (body color, frame duration in ms)
FRAMES = [
    ((180, 60, 60), 120),   # red
    ((60, 60, 180), 120),   # blue
    ((60, 160, 60), 200),   # green
    ((200, 130, 40), 80),   # orange
]

# Top-left corner of the 8x8 marker for each frame (clockwise).
MARKERS = [(4, 4), (20, 4), (20, 20), (4, 20)]


def _make_frame(color: tuple[int, int, int], marker: tuple[int, int]) -> Image.Image:
    """Solid body with a transparent 2px border and a white marker square."""
    arr = np.zeros((SIZE, SIZE, 4), dtype=np.uint8)
    arr[2:-2, 2:-2] = (*color, 255)
    mx, my = marker
    arr[my:my + 8, mx:mx + 8] = (255, 255, 255, 255)
    return Image.fromarray(arr)


def main():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    images = [_make_frame(color, marker) for (color, _), marker in zip(FRAMES, MARKERS)]
    out = OUTPUT_DIR / "hero.gif"
    images[0].save(
        out,
        save_all=True,
        append_images=images[1:],
        duration=[d for _, d in FRAMES],
        disposal=2,
        loop=0,
    )
    print(f"  wrote {out} ({len(images)} frames)")


if __name__ == "__main__":
    main()
