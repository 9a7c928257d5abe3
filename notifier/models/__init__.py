"""
Models for the submission notifier.

Pydantic models validate the inbound webhook body; frozen dataclasses
carry the derived email content and attachments.
"""

from notifier.models.email import Attachment, EmailContent
from notifier.models.submission import (
    FileReference,
    ParsedSubmission,
    Submission,
    SubmissionEvent,
    SubmissionPayload,
)

__all__ = [
    "Attachment",
    "EmailContent",
    "FileReference",
    "ParsedSubmission",
    "Submission",
    "SubmissionEvent",
    "SubmissionPayload",
]
