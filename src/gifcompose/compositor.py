"""Animation compositor — render an output plan against a source animation.

For every frame of the normalized plan:
  1. Render each resolved element: take its source frame, crop to
     (x, y, w, h) if both w and h are positive, then scale with
     nearest-neighbour sampling if scale != 1.
  2. Allocate a canvas covering the bounding box of every element
     (max of pos + rendered size on each axis).
  3. Paint the elements in plan order. Later elements occlude earlier
     ones.
  4. Attach the main element's frame info (duration, disposal)
     verbatim. Overlay frame info is dropped.

The returned animation keeps the source's animation-level info.
"""

import math

from PIL import Image

from .raster import blit, crop, new_canvas, scale_nearest
from .recipe import normalize


def render_element(frame_image: Image.Image, element: dict) -> Image.Image:
    """Crop and scale one source frame as described by a resolved element.

    A crop is applied only when both w and h are positive; anything else
    (including w > 0 with h == 0) means "use the full frame".
    """
    img = frame_image
    if element["w"] > 0 and element["h"] > 0:
        img = crop(img, element["x"], element["y"], element["w"], element["h"])
    if element["scale"] != 1:
        img = scale_nearest(img, element["scale"])
    return img


def canvas_size(placed: list[tuple[dict, Image.Image]]) -> tuple[int, int]:
    """Bounding box of (element, rendered image) pairs, at least 1x1."""
    width = max(math.ceil(el["pos_x"] + img.width) for el, img in placed)
    height = max(math.ceil(el["pos_y"] + img.height) for el, img in placed)
    return max(1, width), max(1, height)


def composite_plan_frame(
    frames: list[dict],
    images: list[dict],
    background: tuple[int, int, int] | None = None,
) -> Image.Image:
    """Composite one plan frame's elements onto a fresh canvas."""
    placed = [
        (element, render_element(frames[element["frame"]]["image"], element))
        for element in images
    ]
    canvas = new_canvas(*canvas_size(placed), background=background)
    for element, img in placed:
        blit(canvas, img, element["pos_x"], element["pos_y"])
    return canvas


def composite(
    source: dict,
    recipe: dict,
    background: tuple[int, int, int] | None = None,
) -> dict:
    """Re-render a source animation according to a recipe.

    Args:
        source: Decoded animation ({"frames": [...], "info": {...}}).
        recipe: Recipe dict (see gifcompose.recipe).
        background: Optional RGB canvas fill; transparent when None.

    Returns:
        New animation dict with one frame per plan entry.
    """
    frames = source["frames"]
    plan = normalize(recipe, len(frames))

    out_frames = []
    for plan_frame in plan:
        images = plan_frame["images"]
        main = images[0]
        out_frames.append({
            "image": composite_plan_frame(frames, images, background),
            "info": dict(frames[main["frame"]]["info"]),
        })

    return {"frames": out_frames, "info": dict(source["info"])}
