"""Fetch image digests through the container runtime's registry API."""

import logging
import time

import docker
import requests

from pindigest.errors import DeadlineExceededError, DigestResolutionError
from pindigest.models import ImageReference

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class Deadline:
    """A point in time shared by every digest lookup of a run."""

    def __init__(self, timeout: float) -> None:
        """Start the deadline clock.

        Args:
            timeout: Seconds until the deadline elapses

        """
        self._expires_at = time.monotonic() + timeout

    def remaining(self) -> float:
        """Return the seconds left before the deadline, never negative."""
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        """Check if the deadline has elapsed."""
        return self.remaining() <= 0


class DigestResolver:
    """Resolves image tags to manifest digests using the Docker SDK.

    The lookup goes through the container runtime's distribution endpoint,
    which authenticates with the credentials from the Docker config file.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: docker.DockerClient | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            base_url: Container runtime socket or URL, environment defaults
                when None
            client: Docker client to use instead of creating one

        """
        self._base_url = base_url
        self.client = client

    def ensure_client(self) -> docker.DockerClient:
        """Create the Docker client on first use."""
        if self.client is None:
            try:
                if self._base_url:
                    self.client = docker.DockerClient(base_url=self._base_url)
                else:
                    self.client = docker.from_env()
            except docker.errors.DockerException as e:
                msg = f"failed to connect to container runtime: {e}"
                raise DigestResolutionError(msg) from e
        return self.client

    def fetch_digest(self, image: ImageReference, deadline: Deadline) -> str:
        """Fetch the manifest digest the registry currently serves for an image.

        Args:
            image: Parsed image reference
            deadline: Deadline shared by the whole resolution phase

        Returns:
            Digest string of the form "sha256:<hex>"

        Raises:
            DeadlineExceededError: If the deadline elapsed before the lookup
            DigestResolutionError: If the registry lookup failed

        """
        full_reference = image.full_reference

        if deadline.expired:
            msg = f"deadline exceeded before fetching {full_reference}"
            raise DeadlineExceededError(msg)

        client = self.ensure_client()

        # Bound this request by what is left of the shared deadline
        remaining = deadline.remaining()
        if remaining <= 0:
            msg = f"deadline exceeded before fetching {full_reference}"
            raise DeadlineExceededError(msg)
        client.api.timeout = remaining

        try:
            registry_data = client.images.get_registry_data(full_reference)
        except requests.exceptions.Timeout as e:
            msg = f"deadline exceeded while fetching {full_reference}: {e}"
            raise DeadlineExceededError(msg) from e
        except (docker.errors.DockerException, requests.exceptions.RequestException) as e:
            msg = f"failed to fetch manifest for {full_reference}: {e}"
            raise DigestResolutionError(msg) from e

        digest = registry_data.id
        if not digest:
            msg = f"registry returned no digest for {full_reference}"
            raise DigestResolutionError(msg)

        return digest
