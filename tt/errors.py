"""Failure kinds raised while talking to the generative backend."""

from __future__ import annotations


class TransformError(Exception):
    """Base class for backend communication failures.

    These never escape ``PipelineOrchestrator.run``; the retry driver
    absorbs them and falls back to placeholder output.
    """

    retryable = True


class BackendUnavailable(TransformError):
    """Transport error, timeout or non-success status."""


class EmptyResponse(TransformError):
    """Success status but no text payload."""


class MalformedResponse(TransformError):
    """Payload present but no JSON array could be extracted from it."""


class ShapeMismatch(TransformError):
    """Parsed array has the wrong length or element shape."""


class MissingCredential(TransformError):
    """No backend credential configured."""

    retryable = False


class DuplicateItemError(ValueError):
    """Two input items share an id; outcomes could not be mapped back."""
