"""Parse image references into registry, repository, tag and digest."""

import re

from pindigest.errors import ReferenceFormatError
from pindigest.models import DOCKER_HUB, ImageReference

DEFAULT_TAG = "latest"
OFFICIAL_NAMESPACE = "library"

# Leading "host[:port]/" segment, only a registry if is_registry_host() agrees
REGISTRY_PATTERN = re.compile(r"^([a-zA-Z0-9.-]+(?::[0-9]+)?)/(.+)")


def is_registry_host(host: str) -> bool:
    """Check if the leading segment of a reference names a registry.

    A registry hostname contains a "." or a ":" or is "localhost". Anything
    else, like "user" in "user/repo:tag", is a Docker Hub namespace.
    """
    return "." in host or ":" in host or host == "localhost"


def split_tag(name: str) -> tuple[str, str]:
    """Split a repository and tag on the last colon."""
    repository, sep, tag = name.rpartition(":")
    if not sep:
        return name, DEFAULT_TAG
    return repository, tag


def parse_image_reference(reference: str) -> ImageReference:
    """Parse an image reference string into its components.

    Args:
        reference: Image reference as written after FROM

    Returns:
        ImageReference with registry, repository and tag filled in

    Raises:
        ReferenceFormatError: If the reference cannot be canonicalized

    Example:
        >>> parse_image_reference("ubuntu:20.04")
        ImageReference(registry='docker.io', repository='library/ubuntu', tag='20.04', original='ubuntu:20.04', digest='')

    """
    if not reference:
        msg = "empty image reference"
        raise ReferenceFormatError(msg)

    if "@sha256:" in reference:
        parts = reference.split("@")
        if len(parts) != 2:
            msg = f"invalid digest reference format: {reference}"
            raise ReferenceFormatError(msg)

        base, digest = parts
        parsed = parse_image_reference(base)
        parsed.digest = digest
        parsed.original = reference
        return parsed

    # The port, if any, is consumed as part of the host before the tag split
    match = REGISTRY_PATTERN.match(reference)
    explicit_registry = bool(match) and is_registry_host(match.group(1))
    if explicit_registry:
        registry = match.group(1)
        repository, tag = split_tag(match.group(2))
    else:
        registry = DOCKER_HUB
        repository, tag = split_tag(reference)

    if not repository or not tag:
        msg = f"invalid image reference format: {reference}"
        raise ReferenceFormatError(msg)

    # Official images live under library/
    if not explicit_registry and "/" not in repository:
        repository = f"{OFFICIAL_NAMESPACE}/{repository}"

    return ImageReference(
        registry=registry,
        repository=repository,
        tag=tag,
        original=reference,
    )
