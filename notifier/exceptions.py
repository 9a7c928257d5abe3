"""
Custom Exceptions for the Submission Notifier

All exceptions follow the pattern of specific, actionable errors
with context needed for debugging and logging.
"""

from dataclasses import dataclass
from typing import Any


class NotifierError(Exception):
    """Base exception for the submission notifier."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


@dataclass
class ConfigError(NotifierError):
    """Required delivery settings are missing."""

    missing: list[str]

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(
            f"Missing required configuration: {', '.join(missing)}",
            missing=missing,
        )


@dataclass
class BadPayloadError(NotifierError):
    """Inbound webhook body is not valid JSON or has the wrong shape."""

    reason: str

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid webhook payload: {reason}", reason=reason)


@dataclass
class AttachmentError(NotifierError):
    """A single file could not be turned into an attachment."""

    url: str
    reason: str
    status_code: int | None = None

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(
            f"Attachment skipped for '{url}': {reason}",
            url=url,
            status_code=status_code,
        )


@dataclass
class ProviderError(NotifierError):
    """Email provider rejected the message or could not be reached."""

    provider: str
    status_code: int | None = None
    detail: Any = None

    def __init__(
        self,
        provider: str,
        status_code: int | None = None,
        detail: Any = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.detail = detail
        super().__init__(
            f"Email send via {provider} failed"
            f"{f' with status {status_code}' if status_code else ''}",
            provider=provider,
            status_code=status_code,
            detail=detail,
        )


@dataclass
class BackupError(NotifierError):
    """Backup webhook POST failed."""

    url: str
    reason: str
    status_code: int | None = None

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(
            f"Backup webhook failed: {reason}",
            url=url,
            status_code=status_code,
        )


@dataclass
class InvalidStateTransitionError(NotifierError):
    """Attempted invalid handler state transition."""

    current_state: str
    new_state: str
    allowed_transitions: list[str]

    def __init__(
        self,
        current_state: str,
        new_state: str,
        allowed_transitions: list[str],
    ) -> None:
        self.current_state = current_state
        self.new_state = new_state
        self.allowed_transitions = allowed_transitions
        super().__init__(
            f"Cannot transition from '{current_state}' to '{new_state}'. "
            f"Allowed transitions: {allowed_transitions}",
            current_state=current_state,
            new_state=new_state,
            allowed_transitions=allowed_transitions,
        )
