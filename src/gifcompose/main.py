"""Subcommand dispatcher for gifcompose.

Usage:
    gifcompose compose  --manifest ... [--name ...] [--workers N]
    gifcompose plan     --manifest ... [--frame-count N]
"""

import argparse
import sys

COMMANDS = {
    "compose": "Render manifest jobs to GIF/PNG",
    "plan": "Print normalized per-frame plans as JSON",
}


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="gifcompose",
        description="Recipe-driven cropping, scaling and compositing of GIF animations.",
        epilog="commands:\n" + "\n".join(f"  {name:<10}{text}" for name, text in COMMANDS.items()),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        # -h/--help after a subcommand belongs to that subcommand's parser.
        add_help=False,
    )
    # A plain positional rather than subparsers: argparse would reject an
    # unknown name itself with status 2.
    parser.add_argument("command", nargs="?", help="Subcommand to run")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command not in COMMANDS:
        # Missing or unknown subcommand. Only a bare -h/--help exits 0.
        parser.print_help()
        sys.exit(0 if remaining in (["-h"], ["--help"]) else 1)

    if parsed.command == "compose":
        from .cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "plan":
        from .plan_cli import main as plan_main
        plan_main(remaining)


if __name__ == "__main__":
    main()
