import logging
from pathlib import Path

import pytest

from pindigest.errors import DigestResolutionError
from pindigest.models import ImageReference
from pindigest.utils.container.registry import Deadline


class FakeResolver:
    """Digest resolver returning canned digests keyed by full reference."""

    def __init__(self, digests=None, errors=None):
        self.digests = dict(digests or {})
        self.errors = dict(errors or {})
        self.requested = []
        self.deadlines = []

    def fetch_digest(self, image: ImageReference, deadline: Deadline) -> str:
        full_reference = image.full_reference
        self.requested.append(full_reference)
        self.deadlines.append(deadline)

        if full_reference in self.errors:
            raise self.errors[full_reference]
        if full_reference in self.digests:
            return self.digests[full_reference]

        msg = f"failed to fetch manifest for {full_reference}: not found"
        raise DigestResolutionError(msg)


@pytest.fixture
def write_containerfile(tmp_path):
    """Write content to a Containerfile in a temporary directory."""

    def _write(content: str, name: str = "Containerfile") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def fake_resolver():
    return FakeResolver


@pytest.fixture(autouse=True)
def _debug_logging(caplog):
    caplog.set_level(logging.DEBUG, logger="pindigest")
