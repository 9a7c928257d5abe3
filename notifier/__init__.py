# Shared Infrastructure for the Submission Notifier
"""
Shared infrastructure for the submission-created webhook.

This package provides:
- Handler state machine (HandlerState, DeliveryOutcome, valid transitions)
- Models for submissions, email content and attachments
- Tool implementations for email delivery and backup forwarding
- Configuration management
- Custom exceptions
"""

from notifier.config import Settings, get_settings
from notifier.exceptions import (
    AttachmentError,
    BackupError,
    BadPayloadError,
    ConfigError,
    InvalidStateTransitionError,
    NotifierError,
    ProviderError,
)
from notifier.state_machine import (
    VALID_TRANSITIONS,
    DeliveryOutcome,
    HandlerState,
    validate_transition,
)

__all__ = [
    # State machine
    "HandlerState",
    "DeliveryOutcome",
    "VALID_TRANSITIONS",
    "validate_transition",
    # Exceptions
    "NotifierError",
    "ConfigError",
    "BadPayloadError",
    "AttachmentError",
    "ProviderError",
    "BackupError",
    "InvalidStateTransitionError",
    # Config
    "Settings",
    "get_settings",
]
