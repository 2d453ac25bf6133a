"""Dataclasses."""

from dataclasses import dataclass

DOCKER_HUB = "docker.io"


@dataclass
class ImageReference:
    """Represents an image reference found in a FROM instruction."""

    registry: str  # Registry hostname, "docker.io" when none is given
    repository: str  # Repository path, e.g. "library/ubuntu"
    tag: str  # Tag name, "latest" when none is given
    original: str  # Reference exactly as written in the containerfile
    digest: str = ""  # Manifest digest, empty until resolved

    @property
    def is_docker_hub(self) -> bool:
        """Return True if the image lives on Docker Hub."""
        return self.registry == DOCKER_HUB

    @property
    def full_reference(self) -> str:
        """Reference used to look up the digest, Docker Hub in shorthand."""
        if self.is_docker_hub:
            return f"{self.repository}:{self.tag}"
        return f"{self.registry}/{self.repository}:{self.tag}"

    @property
    def pinned_reference(self) -> str:
        """Reference written back into the containerfile."""
        if self.is_docker_hub:
            return f"{self.repository}@{self.digest}"
        return f"{self.registry}/{self.repository}@{self.digest}"


@dataclass
class Instruction:
    """Represents a single instruction in a containerfile."""

    keyword: str  # Instruction keyword as written, e.g. "FROM"
    original: str  # Instruction text, continuations joined
    start_line: int  # First line of the instruction (1-based)
    end_line: int  # Last line of the instruction (1-based)
    flags: tuple[str, ...] = ()  # Leading --flag tokens
    arguments: tuple[str, ...] = ()  # Remaining whitespace separated tokens

    def is_from(self) -> bool:
        """Return True for FROM instructions."""
        return self.keyword.lower() == "from"


@dataclass
class FromCommand:
    """Represents a FROM instruction that pulls an image from a registry."""

    instruction: Instruction
    image: ImageReference
    line_start: int
    line_end: int
    alias: str | None = None  # Name after AS directive, if any
