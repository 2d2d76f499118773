"""Manifest loader — YAML recipe manifests to validated render jobs.

A manifest lists render jobs against one or more source animations.
Paths may use ${var} substitution from the paths table and are resolved
relative to the manifest's own directory.

Manifest schema:
  paths:
    sprites: "assets"
  source: "${sprites}/hero.gif"     # default source for every job
  background: "#000000"             # optional canvas fill, default transparent
  animations:                       # each job renders an animated output
    - name: walk-x2                 # optional, unique; defaults to the output stem
      output: "out/walk.gif"        # required
      source: "other.gif"           # optional per-job override
      x: 0
      y: 0
      w: 16
      h: 16
      scale: 2
      use_frames: [0, 1, {frame: 2, blit_images: [...]}]
      blit_images:
        - {pos_x: 8, pos_y: 0, frame: 3, w: 4, h: 4}
  frames:                           # each job renders a single still image
    - output: "out/icon.png"
      frame: 0
      blit_images: [...]

Validation is strict about structure (types, unknown keys, nesting) but
leaves crop rectangles alone: a rectangle without positive w and h just
means "no crop".
"""

from pathlib import Path

import yaml

from .common import parse_hex_color, resolve_path_vars, resolve_relative
from .recipe import MAX_NESTING_DEPTH


# ── Valid keys ─────────────────────────────────────────────────────

NUMBER_FIELDS = ("x", "y", "w", "h", "scale")

OFFSET_FIELDS = ("pos_x", "pos_y")

RECIPE_KEYS = {"x", "y", "w", "h", "scale", "frame", "name", "use_frames", "blit_images"}

BUNDLE_KEYS = RECIPE_KEYS - {"use_frames"}

OVERLAY_KEYS = RECIPE_KEYS | set(OFFSET_FIELDS)

JOB_ONLY_KEYS = {"output", "source", "background"}

JOB_KINDS = {"animations": "animation", "frames": "frame"}


# ── Manifest loading ──────────────────────────────────────────────


def load_manifest(manifest_path: str | Path) -> dict:
    """Load, validate, and normalize a recipe manifest.

    Processing pipeline:
      1. Parse YAML.
      2. Resolve ${path} variables and manifest-relative paths for
         every source and output.
      3. Parse background colors to RGB tuples.
      4. Validate each job's recipe tree.
      5. Check output paths are unique.

    Args:
        manifest_path: Path to the YAML manifest file.

    Returns:
        {"jobs": [job, ...]} where each job is a dict with name, kind
        ("animation" or "frame"), source, output, background and recipe.

    Raises:
        ValueError: Missing/invalid fields.
        FileNotFoundError: Missing manifest file.
    """
    with open(manifest_path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError("Manifest: top level must be a mapping")
    if not any(key in raw for key in JOB_KINDS):
        raise ValueError("Manifest: needs an 'animations' or 'frames' list")

    base_dir = Path(manifest_path).parent
    paths = raw.get("paths", {})
    defaults = {
        "source": raw.get("source"),
        "background": raw.get("background"),
    }

    jobs = []
    outputs_seen = {}
    names_seen = {}
    for list_key, kind in JOB_KINDS.items():
        entries = raw.get(list_key) or []
        if not isinstance(entries, list):
            raise ValueError(f"Manifest: '{list_key}' must be a list")

        for i, entry in enumerate(entries):
            prefix = f"{list_key} {i}"
            job = _load_job(entry, kind, prefix, paths, base_dir, defaults)

            output = str(job["output"])
            if output in outputs_seen:
                raise ValueError(
                    f"{prefix}: duplicate output '{output}' "
                    f"(also written by {outputs_seen[output]})"
                )
            outputs_seen[output] = prefix

            # Unnamed jobs are named after their output file, which can clash.
            if job["name"] in names_seen:
                raise ValueError(
                    f"{prefix}: duplicate name '{job['name']}' "
                    f"(also used by {names_seen[job['name']]}); set a unique 'name'"
                )
            names_seen[job["name"]] = prefix
            jobs.append(job)

    return {"jobs": jobs}


def _load_job(
    entry: dict,
    kind: str,
    prefix: str,
    paths: dict,
    base_dir: Path,
    defaults: dict,
) -> dict:
    """Validate one job entry and split it into job settings + recipe."""
    if not isinstance(entry, dict):
        raise ValueError(f"{prefix}: must be a mapping")
    if entry.get("name") is not None:
        prefix = f"{prefix} ({entry['name']})"

    if "output" not in entry:
        raise ValueError(f"{prefix}: missing required field 'output'")

    source = entry.get("source", defaults["source"])
    if source is None:
        raise ValueError(f"{prefix}: no 'source' (set one on the job or at top level)")

    background = entry.get("background", defaults["background"])
    if background is not None:
        try:
            background = parse_hex_color(str(background))
        except ValueError as e:
            raise ValueError(f"{prefix}: {e}") from e

    recipe = {k: v for k, v in entry.items() if k not in JOB_ONLY_KEYS}
    _validate_recipe(
        recipe, prefix, RECIPE_KEYS,
        allow_use_frames=(kind == "animation"),
    )

    output = resolve_relative(resolve_path_vars(str(entry["output"]), paths), base_dir)
    return {
        "name": entry.get("name") or output.stem,
        "kind": kind,
        "source": resolve_relative(resolve_path_vars(str(source), paths), base_dir),
        "output": output,
        "background": background,
        "recipe": recipe,
    }


# ── Recipe validation ─────────────────────────────────────────────


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_recipe(
    recipe: dict,
    prefix: str,
    allowed_keys: set[str],
    allow_use_frames: bool,
    depth: int = 0,
) -> None:
    """Validate a recipe node and everything nested under it."""
    if depth > MAX_NESTING_DEPTH:
        raise ValueError(
            f"{prefix}: nesting exceeds {MAX_NESTING_DEPTH} levels "
            f"(self-referential blit_images?)"
        )
    if not isinstance(recipe, dict):
        raise ValueError(f"{prefix}: must be a mapping, got {type(recipe).__name__}")

    unknown = set(recipe) - allowed_keys
    if unknown:
        raise ValueError(
            f"{prefix}: unknown field(s) {sorted(unknown)}. "
            f"Valid: {sorted(allowed_keys)}"
        )

    for key in (*NUMBER_FIELDS, *OFFSET_FIELDS):
        if key in recipe and not _is_number(recipe[key]):
            raise ValueError(f"{prefix}: '{key}' must be a number, got {recipe[key]!r}")

    if "scale" in recipe and recipe["scale"] <= 0:
        raise ValueError(f"{prefix}: 'scale' must be > 0, got {recipe['scale']!r}")

    frame = recipe.get("frame")
    if frame is not None and (not isinstance(frame, int) or isinstance(frame, bool)):
        raise ValueError(f"{prefix}: 'frame' must be an integer, got {frame!r}")

    name = recipe.get("name")
    if name is not None and not isinstance(name, str):
        raise ValueError(f"{prefix}: 'name' must be a string")

    if "use_frames" in recipe:
        if not allow_use_frames:
            raise ValueError(f"{prefix}: 'use_frames' is only valid in animations")
        _validate_use_frames(recipe["use_frames"], prefix, depth)

    blit_images = recipe.get("blit_images", [])
    if not isinstance(blit_images, list):
        raise ValueError(f"{prefix}: 'blit_images' must be a list")
    for j, overlay in enumerate(blit_images):
        _validate_recipe(
            overlay, f"{prefix}, blit_images {j}", OVERLAY_KEYS,
            allow_use_frames=allow_use_frames,
            depth=depth + 1,
        )


def _validate_use_frames(use_frames: list, prefix: str, depth: int) -> None:
    """Each entry is a bare frame index or an override bundle."""
    if not isinstance(use_frames, list):
        raise ValueError(f"{prefix}: 'use_frames' must be a list")

    for j, item in enumerate(use_frames):
        item_prefix = f"{prefix}, use_frames {j}"
        if isinstance(item, dict):
            if "use_frames" in item:
                raise ValueError(f"{item_prefix}: override bundles cannot nest 'use_frames'")
            _validate_recipe(
                item, item_prefix, BUNDLE_KEYS,
                allow_use_frames=True,
                depth=depth + 1,
            )
        elif not isinstance(item, int) or isinstance(item, bool):
            raise ValueError(
                f"{item_prefix}: must be a frame index or a mapping, got {item!r}"
            )


# ── Source validation ─────────────────────────────────────────────


def validate_sources(config: dict) -> None:
    """Check that every job's source animation exists on disk.

    Reports all missing sources at once.

    Raises:
        FileNotFoundError: Lists all missing files.
    """
    missing = []
    for job in config["jobs"]:
        source = str(job["source"])
        if not Path(source).exists() and source not in missing:
            missing.append(source)

    if missing:
        msg = f"Missing {len(missing)} source file(s):\n"
        for p in missing:
            msg += f"  - {p}\n"
        raise FileNotFoundError(msg)
