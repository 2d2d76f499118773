"""CLI for inspecting normalized plans.

Prints, as JSON, the fully-resolved per-frame plan of every job in a
manifest. Useful for checking inheritance, overrides and offsets before
rendering anything.

Usage:
    gifcompose plan --manifest recipes.yaml
    gifcompose plan --manifest recipes.yaml --name walk --frame-count 4
"""

import argparse
import json

from .cli import select_jobs
from .frame import resolve_frame
from .gif_io import read_animation
from .manifest import load_manifest
from .recipe import normalize


def build_plans(jobs: list[dict], frame_count: int | None = None) -> list[dict]:
    """Normalize each job's recipe.

    Args:
        jobs: Jobs from load_manifest().
        frame_count: Source frame count to assume. When None, each
            job's source is decoded to count its frames.

    Returns:
        One dict per job with name, kind, output, frame_count and either
        "frames" (animation plan) or "images" (single-frame elements).
    """
    counts = {}
    plans = []
    for job in jobs:
        count = frame_count
        if count is None:
            source = str(job["source"])
            if source not in counts:
                counts[source] = len(read_animation(source)["frames"])
            count = counts[source]

        plan = {
            "name": job["name"],
            "kind": job["kind"],
            "output": str(job["output"]),
            "frame_count": count,
        }
        if job["kind"] == "animation":
            plan["frames"] = normalize(job["recipe"], count)
        else:
            plan["images"] = resolve_frame(job["recipe"], count)
        plans.append(plan)
    return plans


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Print the normalized plan of each manifest job as JSON.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML manifest file",
    )
    parser.add_argument(
        "--name", action="append", default=None,
        help="Only this job (repeatable)",
    )
    parser.add_argument(
        "--frame-count", type=int, default=None,
        help="Assume this many source frames instead of reading sources",
    )
    args = parser.parse_args(args)

    if args.frame_count is not None and args.frame_count < 1:
        parser.error("--frame-count must be >= 1")

    config = load_manifest(args.manifest)
    jobs = select_jobs(config["jobs"], args.name)
    print(json.dumps(build_plans(jobs, args.frame_count), indent=2))


if __name__ == "__main__":
    main()
