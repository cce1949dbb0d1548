"""Domain exceptions raised by the service layer.

The HTTP layer maps each of these onto a status code; nothing here knows
about HTTP.
"""

from __future__ import annotations


class PushDeployError(Exception):
    """Base class for expected, user-facing failures."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(PushDeployError):
    """A referenced project, deployment or user does not exist."""


class DeploymentPreconditionError(PushDeployError):
    """The requested operation is not allowed in the record's current state."""


class MissingCredentialsError(PushDeployError):
    """A required out-of-band credential (e.g. GitHub token) is not configured."""


class InfrastructureError(PushDeployError):
    """The cluster rejected an operation that has to succeed synchronously."""


class InvalidCredentialsError(PushDeployError):
    """A submitted token was rejected by the provider it belongs to."""


class ConflictError(PushDeployError):
    """The record would collide with an existing one (e.g. a taken email)."""
