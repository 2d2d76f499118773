"""CLI for recipe composition.

Reads a YAML manifest, validates it and its source paths, renders every
job (or the named ones) and writes the results.

Usage:
    # Render every job in the manifest
    python -m gifcompose.cli --manifest recipes.yaml

    # Render only some jobs
    python -m gifcompose.cli --manifest recipes.yaml --name walk --name icon

    # Parallel render (one worker per source animation, up to 4)
    python -m gifcompose.cli --manifest recipes.yaml --workers 4

    # Validate only (no rendering)
    python -m gifcompose.cli --manifest recipes.yaml --validate
"""

import argparse
import time
from concurrent.futures import ProcessPoolExecutor, as_completed

from .compositor import composite
from .frame import composite_frame
from .gif_io import read_animation, write_animation, write_image
from .manifest import load_manifest, validate_sources


# ── Rendering helpers ─────────────────────────────────────────────


def select_jobs(jobs: list[dict], names: list[str] | None) -> list[dict]:
    """Filter jobs by name, keeping manifest order.

    Raises:
        ValueError: A requested name matches no job.
    """
    if not names:
        return list(jobs)
    known = {job["name"] for job in jobs}
    unknown = [n for n in names if n not in known]
    if unknown:
        raise ValueError(f"Unknown job name(s): {unknown}. Valid: {sorted(known)}")
    return [job for job in jobs if job["name"] in names]


def group_by_source(jobs: list[dict]) -> dict[str, list[dict]]:
    """Group jobs by source path so each source is decoded once."""
    groups = {}
    for job in jobs:
        groups.setdefault(str(job["source"]), []).append(job)
    return groups


def render_job(job: dict, source: dict) -> int:
    """Render one job against a decoded source and write it.

    Returns the number of frames written, which for an animation can be
    fewer than the plan has when consecutive frames come out identical.
    """
    if job["kind"] == "animation":
        result = composite(source, job["recipe"], background=job["background"])
        count = write_animation(job["output"], result)
    else:
        image = composite_frame(source, job["recipe"], background=job["background"])
        write_image(job["output"], image)
        count = 1
    print(f"  write {job['output']} ({count} frame{'s' if count != 1 else ''})", flush=True)
    return count


def _render_source_group(args):
    """Worker function for parallel rendering.

    Takes a single tuple so it works with ProcessPoolExecutor.submit().
    Each worker decodes one source and renders all of its jobs.
    """
    source_path, jobs = args
    label = f"{source_path} ({len(jobs)} job{'s' if len(jobs) != 1 else ''})"

    print(f"  START  {label}", flush=True)
    t0 = time.monotonic()
    source = read_animation(source_path)
    for job in jobs:
        render_job(job, source)
    elapsed = time.monotonic() - t0
    print(f"  DONE   {label}, {elapsed:.1f}s wall", flush=True)
    return source_path, len(jobs)


# ── Main composition ─────────────────────────────────────────────


def compose(
    manifest_path: str,
    names: list[str] | None = None,
    workers: int = 1,
) -> None:
    """Load manifest, validate, render the selected jobs.

    Args:
        manifest_path: Path to YAML manifest.
        names: If set, render only jobs with these names.
        workers: Number of parallel worker processes. Work is split per
            source animation. 1 = sequential, >1 = ProcessPoolExecutor.
    """
    config = load_manifest(manifest_path)
    jobs = select_jobs(config["jobs"], names)
    validate_sources({"jobs": jobs})

    if not jobs:
        print("No jobs to render.")
        return

    groups = group_by_source(jobs)
    work = list(groups.items())
    effective_workers = min(workers, len(work))

    t_start = time.monotonic()
    if effective_workers <= 1:
        print(f"Rendering {len(jobs)} job(s) from {len(work)} source(s)\n")
        for item in work:
            _render_source_group(item)
    else:
        print(
            f"Rendering {len(jobs)} job(s) from {len(work)} source(s) "
            f"({effective_workers} workers)\n"
        )
        with ProcessPoolExecutor(max_workers=effective_workers) as pool:
            futures = {
                pool.submit(_render_source_group, item): item[0]
                for item in work
            }
            for future in as_completed(futures):
                future.result()  # propagate exceptions

    total_wall = time.monotonic() - t_start
    print(f"\nDone: {len(jobs)} job(s) rendered ({total_wall:.1f}s total)")


# ── CLI entry point ───────────────────────────────────────────────


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Render recipe manifest jobs to GIF/PNG.",
    )
    parser.add_argument(
        "--manifest", required=True,
        help="Path to YAML manifest file",
    )
    parser.add_argument(
        "--name", action="append", default=None,
        help="Render only the job with this name (repeatable)",
    )
    parser.add_argument(
        "--workers", type=int, default=1,
        help="Number of parallel workers, one per source (default: 1)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate manifest only, check sources, don't render",
    )
    args = parser.parse_args(args)

    if args.workers < 1:
        parser.error("--workers must be >= 1")

    if args.validate:
        config = load_manifest(args.manifest)
        jobs = select_jobs(config["jobs"], args.name)
        validate_sources({"jobs": jobs})
        print(f"Manifest valid: {len(jobs)} job(s)")
        for i, job in enumerate(jobs):
            print(f"  {i}: {job['kind']} [{job['name']}] -> {job['output']}")
        print("All sources verified.")
        return

    compose(args.manifest, names=args.name, workers=args.workers)


if __name__ == "__main__":
    main()
