"""gifcompose.common — shared utilities for recipe manifests.

Contains: color parsing, path variable resolution, and resolution of
manifest-relative paths.
"""

import re
from pathlib import Path


# ── Color utilities ────────────────────────────────────────────────

def parse_hex_color(hex_str: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' or 'RRGGBB' string to (R, G, B) tuple."""
    hex_str = hex_str.lstrip("#")
    if len(hex_str) != 6 or not all(c in "0123456789abcdefABCDEF" for c in hex_str):
        raise ValueError(f"Invalid hex color: '#{hex_str}'")
    return (int(hex_str[0:2], 16), int(hex_str[2:4], 16), int(hex_str[4:6], 16))


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def resolve_relative(path: str | Path, base_dir: str | Path) -> Path:
    """Resolve a path against base_dir unless it is already absolute.

    Manifests refer to sources and outputs relative to their own
    location, so the same manifest renders identically from any cwd.
    """
    p = Path(path).expanduser()
    if p.is_absolute():
        return p
    return Path(base_dir) / p
