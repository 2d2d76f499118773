"""Recipe normalizer — sparse, nested recipes to flat per-frame plans.

A recipe describes how to re-render an animation: which source frame to
use, which region to crop, how far to scale it, and which overlays
(other recipes) to paint on top. Recipes are sparse. Anything left out
comes from defaults, from the parent recipe (for overlays), or from a
per-output-frame override bundle in ``use_frames``.

Recipe schema (all fields optional):
  x, y, w, h: crop rectangle. w/h of 0 means "no crop, use full frame".
  scale: scale factor relative to the parent (default 1).
  frame: source frame index (default: the output frame index).
  name: display-only label, never merged.
  use_frames: list cycled per output frame. Each item is either a bare
    frame index or an override bundle (partial recipe, may add
    blit_images of its own).
  blit_images: list of child recipes painted over this one. Each child
    may also carry pos_x / pos_y, its offset in the parent's unscaled
    coordinate space.

Normalization produces an output plan: one entry per output frame, each
holding a flat list of resolved elements. The first element is the main
image; the rest are overlays in paint order.

Composition law for nested overlays:
  - A child inherits x, y, w, h and frame from its resolved parent
    unless it declares its own. Scale is never inherited; a child's
    declared scale defaults to 1.
  - cumulative scale = parent cumulative scale * declared scale.
  - absolute position = parent absolute position
                        + (pos_x, pos_y) * parent cumulative scale.
  - A scale in an override bundle replaces the declared scale of that
    element, never the cumulative scale handed down by its parent.
"""


RECIPE_DEFAULTS = {"x": 0, "y": 0, "w": 0, "h": 0, "scale": 1}

# Structural and display-only keys never take part in a field merge.
EXCLUDED_FIELDS = frozenset({"use_frames", "blit_images", "name", "pos_x", "pos_y"})

# Fields an overlay picks up from its resolved parent.
INHERITED_FIELDS = ("x", "y", "w", "h", "frame")

MAX_NESTING_DEPTH = 64


def merge_fields(*layers: dict | None, exclude=EXCLUDED_FIELDS) -> dict:
    """Merge recipe layers in ascending priority (later layers win).

    Keys in *exclude* are dropped from every layer. None layers are
    skipped. The input dicts are never modified.
    """
    merged = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if key not in exclude:
                merged[key] = value
    return merged


def _is_frame_index(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _current_override(recipe: dict, index: int):
    """Pick this output frame's entry from use_frames, cycling by modulo."""
    use_frames = recipe.get("use_frames")
    if not use_frames:
        return None
    return use_frames[index % len(use_frames)]


def _fixed_frame(recipe: dict, override, index: int, frame_count: int) -> int:
    """Source frame for one element.

    Priority: bare index override > bundle frame > recipe frame > output
    index. Python's % keeps the result in [0, frame_count) for negative
    inputs too.
    """
    if _is_frame_index(override):
        frame = override
    elif isinstance(override, dict) and override.get("frame") is not None:
        frame = override["frame"]
    elif recipe.get("frame") is not None:
        frame = recipe["frame"]
    else:
        frame = index
    return int(frame) % frame_count


def output_frame_count(recipe: dict, frame_count: int) -> int:
    """Number of output frames a recipe produces.

    The widest cycle among the source, the root's use_frames, and the
    use_frames of each direct overlay. Deeper overlays do not extend
    the output.
    """
    counts = [frame_count]
    if recipe.get("use_frames"):
        counts.append(len(recipe["use_frames"]))
    for overlay in recipe.get("blit_images") or []:
        if overlay.get("use_frames"):
            counts.append(len(overlay["use_frames"]))
    return max(counts)


def resolve_one(
    recipe: dict,
    index: int,
    frame_count: int,
    scale: float = 1,
    pos_x: float = 0,
    pos_y: float = 0,
    cycle: bool = True,
    depth: int = 0,
) -> list[dict]:
    """Resolve one recipe for one output frame into a flat element list.

    Args:
        recipe: Recipe dict (not modified).
        index: Output frame index.
        frame_count: Number of frames in the source animation.
        scale: Cumulative scale of the parent (1 at the root).
        pos_x: Absolute x of this element's origin.
        pos_y: Absolute y of this element's origin.
        cycle: If False, use_frames is ignored at every level (used by
            the single-frame variant).
        depth: Current nesting depth, for the recursion guard.

    Returns:
        [main element, *overlay elements], overlays depth-first in
        declaration order.

    Raises:
        ValueError: Nesting deeper than MAX_NESTING_DEPTH.
    """
    if depth > MAX_NESTING_DEPTH:
        raise ValueError(
            f"Recipe nesting exceeds {MAX_NESTING_DEPTH} levels "
            f"(self-referential blit_images?)"
        )

    override = _current_override(recipe, index) if cycle else None
    bundle = override if isinstance(override, dict) else {}

    fields = merge_fields(RECIPE_DEFAULTS, recipe, bundle)
    main = {
        "frame": _fixed_frame(recipe, override, index, frame_count),
        "x": fields["x"],
        "y": fields["y"],
        "w": fields["w"],
        "h": fields["h"],
        "scale": scale * fields["scale"],
        "pos_x": pos_x,
        "pos_y": pos_y,
    }

    # Bundle overlays are appended to the recipe's own, not substituted.
    overlays = [*(recipe.get("blit_images") or []), *(bundle.get("blit_images") or [])]

    elements = [main]
    for overlay in overlays:
        child = merge_fields({k: main[k] for k in INHERITED_FIELDS}, overlay)
        for key in ("use_frames", "blit_images"):
            if key in overlay:
                child[key] = overlay[key]
        elements.extend(resolve_one(
            child, index, frame_count,
            scale=main["scale"],
            pos_x=pos_x + overlay.get("pos_x", 0) * main["scale"],
            pos_y=pos_y + overlay.get("pos_y", 0) * main["scale"],
            cycle=cycle,
            depth=depth + 1,
        ))
    return elements


def normalize(recipe: dict, frame_count: int) -> list[dict]:
    """Normalize a recipe into an output plan.

    Args:
        recipe: Recipe dict (see module docstring).
        frame_count: Number of frames in the source animation.

    Returns:
        List of {"images": [element, ...]}, one per output frame.

    Raises:
        ValueError: frame_count < 1, or runaway nesting.
    """
    if frame_count < 1:
        raise ValueError(f"Source animation has no frames (frame_count={frame_count})")

    return [
        {"images": resolve_one(recipe, index, frame_count)}
        for index in range(output_frame_count(recipe, frame_count))
    ]
