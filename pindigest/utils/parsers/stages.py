"""Track build stage aliases declared in a containerfile."""

import logging

from pindigest.models import Instruction

logger = logging.getLogger(__name__)


def stage_alias(instruction: Instruction) -> str | None:
    """Return the name after the AS directive of a FROM instruction, if any."""
    # The first argument is the image, the AS clause can only follow it
    remaining = instruction.arguments[1:]
    for index, token in enumerate(remaining):
        if token.lower() == "as":
            if index + 1 < len(remaining):
                return remaining[index + 1]
            break
    return None


class StageTracker:
    """Set of build stage aliases, compared case-insensitively."""

    def __init__(self) -> None:
        """Initialize an empty set of stage aliases."""
        self._stages: set[str] = set()

    def collect(self, instruction: Instruction) -> None:
        """Record the stage alias declared by a FROM instruction.

        Args:
            instruction: FROM instruction, with or without an AS clause

        """
        alias = stage_alias(instruction)
        if alias is None:
            return

        self._stages.add(alias.lower())
        logger.debug("Collected build stage alias: %s", alias)

    def is_stage(self, name: str) -> bool:
        """Check if a name refers to a collected build stage."""
        return name.lower() in self._stages

    @property
    def names(self) -> frozenset[str]:
        """Return the collected (lowercased) stage aliases."""
        return frozenset(self._stages)

    def __len__(self) -> int:
        """Return the number of collected stage aliases."""
        return len(self._stages)
