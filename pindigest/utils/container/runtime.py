"""Detects how to interact with the container runtime (Docker or Podman)."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def candidate_sockets() -> list[Path]:
    """List the runtime sockets to probe, in order of preference."""
    sockets = [Path("/var/run/docker.sock")]

    # Rootless Podman
    if runtime_dir := os.environ.get("XDG_RUNTIME_DIR"):
        sockets.append(Path(runtime_dir) / "podman" / "podman.sock")

    sockets.append(Path("/run/podman/podman.sock"))
    return sockets


def get_container_runtime_socket() -> str | None:
    """Detect the API socket of an available container runtime.

    Returns:
        str: DOCKER_HOST, or a unix:// URL for the first socket found
        None: If no container runtime socket is found

    """
    if docker_host := os.environ.get("DOCKER_HOST"):
        logger.debug("Using DOCKER_HOST: %s", docker_host)
        return docker_host

    for socket in candidate_sockets():
        if socket.is_socket():
            logger.debug("Found container runtime socket: %s", socket)
            return f"unix://{socket}"

    # No container runtime found
    logger.debug("No container runtime socket found")
    return None
