"""Argument Parser for the PinDigest Package."""

import argparse
from pathlib import Path

from pindigest.utils.container.registry import DEFAULT_TIMEOUT


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="pindigest",
        description="Pin FROM images in container files to their latest digests.",
    )

    parser.add_argument(
        "file",
        type=Path,
        nargs="?",
        help="Path to the container file.",
    )
    parser.add_argument(
        "--socket",
        help="Container runtime socket or URL used to query registries.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Seconds allowed for resolving all digests (default: %(default)s).",
    )
    parser.add_argument(
        "--verbosity",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="INFO",
        help="Set logging level.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the changes as a diff without writing them.",
    )

    return parser

