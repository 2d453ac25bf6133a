"""Exceptions raised by PinDigest."""


class PinDigestError(Exception):
    """Base class for all PinDigest errors."""


class ContainerfileParseError(PinDigestError):
    """The containerfile could not be read or has no instructions."""


class MissingReferenceError(PinDigestError):
    """A FROM instruction has no image reference."""


class ReferenceFormatError(PinDigestError):
    """An image reference could not be canonicalized."""


class DigestResolutionError(PinDigestError):
    """The registry did not return a digest for an image."""


class DeadlineExceededError(DigestResolutionError):
    """The time allowed for digest resolution has elapsed."""
