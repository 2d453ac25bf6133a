"""Pin the FROM images of a containerfile to their latest digests."""

import logging
from pathlib import Path

from pindigest.errors import DigestResolutionError
from pindigest.models import FromCommand
from pindigest.utils.container.registry import DEFAULT_TIMEOUT, Deadline, DigestResolver
from pindigest.utils.parsers.containerfiles import (
    ContainerfileParser,
    extract_from_commands,
)
from pindigest.utils.parsers.stages import StageTracker
from pindigest.utils.update_containerfile import (
    containerfile_diff,
    reconstruct_lines,
    write_containerfile,
)

logger = logging.getLogger(__name__)


class ContainerfileUpdater:
    """Updates one containerfile with the latest digests of its base images.

    All state of a run lives on the instance, so separate runs never share
    stage aliases or deadlines.
    """

    def __init__(
        self,
        containerfile_path: Path,
        resolver: DigestResolver | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the updater.

        Args:
            containerfile_path: Path to the Containerfile/Dockerfile
            resolver: Digest resolver, a default DigestResolver when None
            timeout: Seconds allowed for resolving every digest of the file

        """
        self.containerfile_path = containerfile_path
        self.resolver = resolver or DigestResolver()
        self.timeout = timeout
        self.build_stages = StageTracker()

    def extract_from_commands(self, parser: ContainerfileParser) -> list[FromCommand]:
        """Parse the containerfile and return the FROM commands to pin."""
        return extract_from_commands(parser.instructions(), self.build_stages)

    def resolve_digests(self, from_commands: list[FromCommand]) -> int:
        """Fetch the latest digest for every FROM command.

        Existing digests are always replaced. A failed lookup is logged and
        leaves the command without a digest.

        Returns:
            Number of commands that received a digest

        """
        deadline = Deadline(self.timeout)
        resolved = 0

        for cmd in from_commands:
            image = cmd.image
            logger.info(
                "Fetching latest digest for %s/%s:%s",
                image.registry,
                image.repository,
                image.tag,
            )
            # Stale digests from the source are never kept
            image.digest = ""

            try:
                digest = self.resolver.fetch_digest(image, deadline)
            except DigestResolutionError as e:
                logger.warning("Failed to fetch digest for %s: %s", image.original, e)
                continue

            logger.info("Found latest digest for %s: %s", image.original, digest)
            image.digest = digest
            resolved += 1

        return resolved

    def update(self, *, dry_run: bool = False) -> int:
        """Update the containerfile with the latest digests.

        Args:
            dry_run: Log the changes instead of writing them

        Returns:
            Number of FROM lines rewritten to a digest

        Raises:
            ContainerfileParseError: If the containerfile cannot be parsed
            OSError: If the updated containerfile cannot be written

        """
        logger.info("Processing containerfile: %s", self.containerfile_path)

        parser = ContainerfileParser(containerfile_path=self.containerfile_path)
        from_commands = self.extract_from_commands(parser)

        if not from_commands:
            logger.info("No FROM commands found in %s", self.containerfile_path)
            return 0

        logger.info("Found %d FROM command(s)", len(from_commands))

        resolved = self.resolve_digests(from_commands)
        logger.info("Resolved %d of %d digest(s)", resolved, len(from_commands))

        lines = parser.lines()
        updated_lines, updated = reconstruct_lines(lines, from_commands)

        if dry_run:
            diff = containerfile_diff(lines, updated_lines, self.containerfile_path)
            logger.info("Dry run, not writing %s:\n%s", self.containerfile_path, diff)
            return updated

        if not updated:
            logger.info("No changes to write to %s", self.containerfile_path)
            return 0

        write_containerfile(self.containerfile_path, updated_lines)
        logger.info(
            "Updated %d of %d image reference(s) in %s",
            updated,
            len(from_commands),
            self.containerfile_path,
        )
        return updated
