from unittest import mock

import docker
import pytest
import requests

from pindigest.errors import DeadlineExceededError, DigestResolutionError
from pindigest.utils.container.registry import Deadline, DigestResolver
from pindigest.utils.parsers.references import parse_image_reference


def make_client(digest="sha256:abc"):
    client = mock.Mock()
    client.images.get_registry_data.return_value = mock.Mock(id=digest)
    return client


def test_fetch_digest_docker_hub_shorthand():
    client = make_client()
    resolver = DigestResolver(client=client)

    digest = resolver.fetch_digest(parse_image_reference("ubuntu:20.04"), Deadline(30))

    assert digest == "sha256:abc"
    client.images.get_registry_data.assert_called_once_with("library/ubuntu:20.04")
    assert 0 < client.api.timeout <= 30


def test_fetch_digest_qualified_registry():
    client = make_client()
    resolver = DigestResolver(client=client)

    resolver.fetch_digest(parse_image_reference("gcr.io/distroless/static:nonroot"), Deadline(30))

    client.images.get_registry_data.assert_called_once_with("gcr.io/distroless/static:nonroot")


def test_fetch_digest_ignores_pinned_digest():
    client = make_client("sha256:new")
    resolver = DigestResolver(client=client)
    image = parse_image_reference("alpine:3.19@sha256:old")

    assert resolver.fetch_digest(image, Deadline(30)) == "sha256:new"
    client.images.get_registry_data.assert_called_once_with("library/alpine:3.19")


@pytest.mark.parametrize(
    "error",
    [
        docker.errors.NotFound("manifest unknown"),
        docker.errors.APIError("unauthorized"),
        requests.exceptions.ConnectionError("connection refused"),
    ],
)
def test_fetch_digest_wraps_errors(error):
    client = make_client()
    client.images.get_registry_data.side_effect = error
    resolver = DigestResolver(client=client)

    with pytest.raises(DigestResolutionError, match="failed to fetch manifest for library/alpine:latest"):
        resolver.fetch_digest(parse_image_reference("alpine"), Deadline(30))


def test_fetch_digest_request_timeout():
    client = make_client()
    client.images.get_registry_data.side_effect = requests.exceptions.ReadTimeout("timed out")
    resolver = DigestResolver(client=client)

    with pytest.raises(DeadlineExceededError):
        resolver.fetch_digest(parse_image_reference("alpine"), Deadline(30))


def test_fetch_digest_after_deadline():
    client = make_client()
    resolver = DigestResolver(client=client)

    with pytest.raises(DeadlineExceededError, match="deadline exceeded"):
        resolver.fetch_digest(parse_image_reference("alpine"), Deadline(0))

    client.images.get_registry_data.assert_not_called()


def test_fetch_digest_empty_digest():
    resolver = DigestResolver(client=make_client(digest=None))

    with pytest.raises(DigestResolutionError, match="no digest"):
        resolver.fetch_digest(parse_image_reference("alpine"), Deadline(30))


def test_ensure_client_uses_base_url():
    with mock.patch("docker.DockerClient") as docker_client:
        resolver = DigestResolver(base_url="unix:///run/podman/podman.sock")

        assert resolver.ensure_client() is docker_client.return_value
        assert resolver.ensure_client() is docker_client.return_value

    docker_client.assert_called_once_with(base_url="unix:///run/podman/podman.sock")


def test_ensure_client_from_env():
    with mock.patch("docker.from_env") as from_env:
        resolver = DigestResolver()

        assert resolver.ensure_client() is from_env.return_value


def test_unreachable_runtime_is_a_resolution_error():
    with mock.patch("docker.from_env", side_effect=docker.errors.DockerException("no socket")):
        resolver = DigestResolver()

        with pytest.raises(DigestResolutionError, match="failed to connect"):
            resolver.fetch_digest(parse_image_reference("alpine"), Deadline(30))


def test_deadline_remaining():
    assert Deadline(0).expired
    assert Deadline(0).remaining() == 0
    assert not Deadline(60).expired
    assert 0 < Deadline(60).remaining() <= 60
