"""Animation I/O — decode source animations, write composited results.

A decoded animation is a plain dict:

  {"frames": [{"image": <RGBA PIL.Image>,
               "info": {"duration": <ms>, "disposal": <int>}}, ...],
   "info": {"loop": <int>, "background": <int>}}

Frame info is the timing/disposal metadata carried over to any output
frame that uses the frame as its main image. Animation info holds the
global settings (loop count, background index) reused when writing;
either key is absent when the source did not set it.

Writes go to a temporary sibling first and are moved into place only
once the encoder has finished, so a failed write never leaves a partial
file behind.
"""

import os
from pathlib import Path

from PIL import Image, ImageSequence


def read_animation(path: str | Path) -> dict:
    """Decode every frame of an animated image (GIF, APNG, WebP).

    Raises:
        FileNotFoundError: path does not exist.
        PIL.UnidentifiedImageError: not a decodable image.
        ValueError: the image has no frames.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Source animation not found: {path}")

    with Image.open(path) as im:
        # Absent keys stay absent: no loop entry means play once.
        info = {k: im.info[k] for k in ("loop", "background") if k in im.info}

        frames = []
        for frame in ImageSequence.Iterator(im):
            frames.append({
                "image": frame.convert("RGBA"),
                "info": {
                    "duration": frame.info.get("duration", 0),
                    "disposal": getattr(frame, "disposal_method", 0),
                },
            })

    if not frames:
        raise ValueError(f"Source animation has no frames: {path}")
    return {"frames": frames, "info": info}


def _write_atomic(path: Path, save) -> None:
    """Run save(tmp_path), then move the temp file over path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    # Keep the suffix so Pillow picks the format from the extension.
    tmp = path.with_name(f".{path.stem}.partial{path.suffix}")
    try:
        save(tmp)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def _merge_repeats(frames: list[dict]) -> list[dict]:
    """Fold each frame that repeats its predecessor into it.

    GIF encoders drop a frame identical to the one before and add its
    duration to that frame. Merging here first keeps the written frame
    count known to the caller. A merged frame keeps the disposal of the
    first frame in its run.
    """
    merged = []
    for frame in frames:
        image = frame["image"]
        duration = frame["info"].get("duration", 0)
        if merged:
            last = merged[-1]["image"]
            if (last.mode, last.size) == (image.mode, image.size) and last.tobytes() == image.tobytes():
                merged[-1]["duration"] += duration
                continue
        merged.append({
            "image": image,
            "duration": duration,
            "disposal": frame["info"].get("disposal", 0),
        })
    return merged


def write_animation(path: str | Path, animation: dict) -> int:
    """Encode an animation dict to path, creating parent directories.

    A run of identical consecutive frames is written as one frame that
    lasts the whole run. Loop count and background index are written
    only when the animation info has them, so a source that plays once
    is written as playing once.

    Returns the number of frames written.
    """
    path = Path(path)
    if not animation["frames"]:
        raise ValueError(f"Refusing to write an animation with no frames: {path}")

    frames = _merge_repeats(animation["frames"])
    images = [f["image"] for f in frames]
    durations = [f["duration"] for f in frames]
    disposals = [f["disposal"] for f in frames]

    options = {k: animation["info"][k] for k in ("loop", "background") if k in animation["info"]}
    # Pillow's single-frame path only takes scalar duration and disposal.
    options["duration"] = durations if len(frames) > 1 else durations[0]
    options["disposal"] = disposals if len(set(disposals)) > 1 else disposals[0]

    def _save(target):
        images[0].save(
            target,
            save_all=True,
            append_images=images[1:],
            **options,
        )

    _write_atomic(path, _save)
    return len(frames)


def write_image(path: str | Path, image: Image.Image) -> None:
    """Encode a single raster to path, creating parent directories."""
    path = Path(path)
    if path.suffix.lower() in {".jpg", ".jpeg"}:
        # JPEG has no alpha channel.
        image = image.convert("RGB")
    _write_atomic(path, image.save)
