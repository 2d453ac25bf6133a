"""Update the containerfile with pinned image digests."""

import difflib
import logging
import shutil
from pathlib import Path

from pindigest.models import FromCommand

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"


def reconstruct_lines(
    lines: list[str],
    from_commands: list[FromCommand],
) -> tuple[list[str], int]:
    """Rewrite FROM lines to reference images by digest.

    Only the first occurrence of the original image reference on the first
    line of each resolved FROM command is replaced, so AS clauses, flags and
    every other line are kept as they are. A reference that is not on that
    line, such as one after a line continuation, is left untouched.

    Args:
        lines: Containerfile lines without line terminators
        from_commands: FROM commands, unresolved ones are left untouched

    Returns:
        The updated lines and the number of lines that changed

    """
    # Only update if we successfully fetched a digest
    updates = {cmd.line_start: cmd for cmd in from_commands if cmd.image.digest}

    new_lines = []
    updated = 0
    for line_number, line in enumerate(lines, start=1):
        cmd = updates.get(line_number)
        if cmd is None:
            new_lines.append(line)
            continue

        if cmd.image.original not in line:
            logger.warning(
                "Image reference %s not found on line %d, leaving it unchanged",
                cmd.image.original,
                line_number,
            )
            new_lines.append(line)
            continue

        updated_line = line.replace(cmd.image.original, cmd.image.pinned_reference, 1)
        new_lines.append(updated_line)
        if updated_line != line:
            updated += 1
            logger.info("Updated line %d: %s -> %s", line_number, line, updated_line)

    return new_lines, updated


def backup_containerfile(file_path: Path) -> None:
    """Copy the containerfile next to itself with a .backup suffix."""
    backup_path = file_path.with_name(file_path.name + BACKUP_SUFFIX)
    try:
        shutil.copyfile(file_path, backup_path)
    except OSError as e:
        logger.warning("Failed to create backup %s: %s", backup_path, e)
        return

    logger.info("Created backup: %s", backup_path)


def write_containerfile(file_path: Path, lines: list[str]) -> None:
    """Back up the containerfile, then overwrite it with the given lines.

    Args:
        file_path: Path to the Containerfile/Dockerfile
        lines: Lines to write, each one is terminated by a newline

    Raises:
        OSError: If the containerfile cannot be written

    """
    backup_containerfile(file_path)

    with file_path.open("w", encoding="utf-8", newline="") as f:
        for line in lines:
            f.write(line + "\n")


def containerfile_diff(
    lines: list[str],
    updated_lines: list[str],
    file_path: Path,
) -> str:
    """Generate a diff between the old and new Containerfile."""
    return "\n".join(
        difflib.unified_diff(
            lines,
            updated_lines,
            fromfile=f"{file_path} (old)",
            tofile=f"{file_path} (new)",
            lineterm="",
        ),
    )
