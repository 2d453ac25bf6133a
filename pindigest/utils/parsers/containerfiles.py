"""Parser Utils for PinDigest."""

import io
import logging
import re
from pathlib import Path

from dockerfile_parse import DockerfileParser

from pindigest.errors import (
    ContainerfileParseError,
    MissingReferenceError,
    ReferenceFormatError,
)
from pindigest.models import FromCommand, ImageReference, Instruction
from pindigest.utils.parsers.references import parse_image_reference
from pindigest.utils.parsers.stages import StageTracker, stage_alias

logger = logging.getLogger(__name__)

SCRATCH = "scratch"

# <<EOF, <<-EOF, <<"EOF" or <<'EOF', but not the <<< here-string
HEREDOC_PATTERN = re.compile(r"(?<!<)<<-?([\"']?)([A-Za-z_][A-Za-z0-9_]*)\1")
HEREDOC_INSTRUCTIONS = frozenset({"run", "copy", "add"})


def split_arguments(value: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split an instruction value into leading --flags and arguments."""
    tokens = value.split()
    index = 0
    while index < len(tokens) and tokens[index].startswith("--"):
        index += 1
    return tuple(tokens[:index]), tuple(tokens[index:])


def heredoc_end_line(instruction: Instruction, lines: list[str]) -> int:
    """Return the last line used by an instruction, heredoc bodies included.

    Each heredoc body starts after the previous one ends and runs up to the
    line holding only its terminator word.

    Args:
        instruction: Parsed instruction
        lines: Containerfile lines without line terminators

    Returns:
        Line number (1-based) of the last heredoc terminator, or the
        instruction's end line when it has no heredoc

    """
    line_number = instruction.end_line
    if instruction.keyword.lower() not in HEREDOC_INSTRUCTIONS:
        return line_number

    for match in HEREDOC_PATTERN.finditer(instruction.original):
        word = match.group(2)
        while line_number < len(lines):
            line_number += 1
            if lines[line_number - 1].strip() == word:
                break
    return line_number


def drop_heredoc_bodies(
    instructions: list[Instruction],
    lines: list[str],
) -> list[Instruction]:
    """Drop the instructions the parser found inside heredoc bodies."""
    kept = []
    body_end = 0
    for instruction in instructions:
        if instruction.start_line <= body_end:
            logger.debug(
                "Ignoring heredoc line %d: %s",
                instruction.start_line,
                instruction.original,
            )
            continue

        kept.append(instruction)
        body_end = heredoc_end_line(instruction, lines)
    return kept


class ContainerfileParser:
    """Parser for Containerfiles/Dockerfiles."""

    def __init__(self, containerfile_path: Path) -> None:
        """Initialize the parser with a containerfile.

        Args:
            containerfile_path: Path to the Containerfile/Dockerfile

        Raises:
            ContainerfileParseError: If the containerfile cannot be read

        """
        self.containerfile_path = containerfile_path
        try:
            self.containerfile_content = self.containerfile_path.read_text(
                encoding="utf-8",
            )
        except (OSError, UnicodeDecodeError) as e:
            msg = f"failed to open containerfile {containerfile_path}: {e}"
            raise ContainerfileParseError(msg) from e

    def lines(self) -> list[str]:
        """Return the containerfile lines without line terminators.

        A trailing carriage return is dropped from every line, and the final
        newline does not produce an extra empty line.
        """
        content = self.containerfile_content
        if not content:
            return []

        lines = content.split("\n")
        if content.endswith("\n"):
            lines.pop()
        return [line.removesuffix("\r") for line in lines]

    def instructions(self) -> list[Instruction]:
        """Parse the containerfile into instructions.

        Returns:
            List of Instruction objects in source order, comments excluded

        Raises:
            ContainerfileParseError: If the containerfile has no instructions

        Example:
            >>> parser = ContainerfileParser(Path("Containerfile"))
            >>> for instruction in parser.instructions():
            ...     print(instruction.start_line, instruction.original)
            1 FROM python:3.12-slim AS builder
            3 RUN pip install .

        """
        parser = DockerfileParser(
            fileobj=io.StringIO(self.containerfile_content),
            env_replace=False,
        )

        instructions = []
        for item in parser.structure:
            if item["instruction"] == "COMMENT":
                continue

            flags, arguments = split_arguments(item["value"])
            instructions.append(
                Instruction(
                    keyword=item["instruction"],
                    original=f"{item['instruction']} {item['value']}".strip(),
                    start_line=item["startline"] + 1,
                    end_line=item["endline"] + 1,
                    flags=flags,
                    arguments=arguments,
                ),
            )

        # dockerfile-parse reads heredoc bodies as instructions
        instructions = drop_heredoc_bodies(instructions, self.lines())

        if not instructions:
            msg = "file with no instructions"
            raise ContainerfileParseError(msg)

        return instructions


def parse_from_instruction(
    instruction: Instruction,
    stages: StageTracker,
) -> tuple[ImageReference, bool]:
    """Extract the image reference from a FROM instruction.

    Args:
        instruction: FROM instruction
        stages: Build stage aliases collected from the whole containerfile

    Returns:
        The image reference and whether it names a build stage or scratch
        instead of a registry image

    Raises:
        MissingReferenceError: If the instruction has no image reference
        ReferenceFormatError: If the image reference is malformed

    """
    if not instruction.arguments or not instruction.arguments[0]:
        msg = f"FROM command missing image reference at line {instruction.start_line}"
        raise MissingReferenceError(msg)

    image = instruction.arguments[0]

    # Stage references and scratch are not pulled from a registry
    if stages.is_stage(image) or image.lower() == SCRATCH:
        return ImageReference(registry="", repository="", tag="", original=image), True

    return parse_image_reference(image), False


def extract_from_commands(
    instructions: list[Instruction],
    stages: StageTracker,
) -> list[FromCommand]:
    """Find the FROM instructions that pull images from a registry.

    Every stage alias is collected before any FROM is classified, so a
    reference to a stage is recognized wherever the stage is declared.

    Args:
        instructions: Parsed containerfile instructions
        stages: Tracker that receives the build stage aliases

    Returns:
        List of FromCommand objects in source order

    """
    from_instructions = [i for i in instructions if i.is_from()]

    for instruction in from_instructions:
        stages.collect(instruction)

    if stages:
        logger.info(
            "Collected %d build stage alias(es): %s",
            len(stages),
            ", ".join(sorted(stages.names)),
        )

    from_commands = []
    for instruction in from_instructions:
        logger.info(
            "Found FROM command at line %d-%d: %s",
            instruction.start_line,
            instruction.end_line,
            instruction.original,
        )

        try:
            image, is_stage_ref = parse_from_instruction(instruction, stages)
        except (MissingReferenceError, ReferenceFormatError) as e:
            logger.warning("Failed to parse FROM command: %s", e)
            continue

        if is_stage_ref:
            logger.info(
                "Skipping FROM command that references build stage or scratch: %s",
                image.original,
            )
            continue

        alias = stage_alias(instruction)
        if alias:
            logger.debug("Found multi-stage build alias: %s", alias)

        from_commands.append(
            FromCommand(
                instruction=instruction,
                image=image,
                line_start=instruction.start_line,
                line_end=instruction.end_line,
                alias=alias,
            ),
        )

    return from_commands
