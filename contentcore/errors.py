"""
Shared error types for the content core.
"""

from __future__ import annotations

from dataclasses import dataclass


class ValidationIssue(ValueError):
    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type
        self.error_code = error_code
        self.data = data


class ContentValidationError(ValidationIssue):
    """One or more fields of a record or envelope failed validation.

    ``errors`` maps field name to the list of messages for that field, the
    shape form layers render directly.
    """

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = {field: list(messages) for field, messages in errors.items()}
        field = next(iter(self.errors), "unknown")
        super().__init__(self.error_message(), field=field, error_type="invalid")

    def error_message(self) -> str:
        return "; ".join(
            f"{field}: {message}"
            for field, messages in self.errors.items()
            for message in messages
        )


class SaveAborted(RuntimeError):
    """The envelope of a record failed validation; nothing was persisted."""

    def __init__(self, error: ContentValidationError):
        self.error = error
        self.reason = error.error_message()
        super().__init__(f"Could not validate associated content record! ({self.reason})")

    @property
    def errors(self) -> dict[str, list[str]]:
        return self.error.errors


class ConfigurationError(RuntimeError):
    """A record was saved without ever being assigned a container."""


class ContainerNotFound(LookupError):
    """Raised when a container reference does not resolve."""

    def __init__(self, container_ref):
        super().__init__(f"Content container not found: {container_ref}")
        self.container_ref = container_ref


@dataclass(frozen=True)
class MoveDenied:
    """Result value of a refused move; falsy so callers can test it directly."""

    reason: str

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.reason
