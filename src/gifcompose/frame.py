"""Single-frame variant — render one still image from a recipe.

Uses the same merge-and-resolve rules as the animation normalizer, but
for one fixed index (the recipe's frame, default 0) with use_frames
ignored at every level. The canvas is the root element's rendered size;
overlays reaching past it are clipped.
"""

from PIL import Image

from .compositor import render_element
from .raster import blit, new_canvas
from .recipe import resolve_one


def resolve_frame(recipe: dict, frame_count: int) -> list[dict]:
    """Resolve a recipe into [root element, *overlay elements].

    Raises:
        ValueError: frame_count < 1, or runaway nesting.
    """
    if frame_count < 1:
        raise ValueError(f"Source animation has no frames (frame_count={frame_count})")
    index = recipe.get("frame") or 0
    return resolve_one(recipe, index, frame_count, cycle=False)


def composite_frame(
    source: dict,
    recipe: dict,
    background: tuple[int, int, int] | None = None,
) -> Image.Image:
    """Render a single composited raster from a source animation."""
    frames = source["frames"]
    root, *overlays = resolve_frame(recipe, len(frames))

    base = render_element(frames[root["frame"]]["image"], root)
    canvas = new_canvas(base.width, base.height, background=background)
    blit(canvas, base, 0, 0)

    for element in overlays:
        img = render_element(frames[element["frame"]]["image"], element)
        blit(canvas, img, element["pos_x"], element["pos_y"])
    return canvas
