"""
Email Models

Immutable records for the composed notification and its attachments.
"""

import base64
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailContent:
    """Subject and bodies derived from one submission."""

    subject: str
    html_body: str
    text_body: str


@dataclass(frozen=True)
class Attachment:
    """
    Fetched, size-checked file ready for email delivery.

    `content` holds the base64 encoding of the file bytes, which is the
    form the SendGrid API expects. `size_bytes` is the decoded size.
    """

    content: str
    filename: str
    content_type: str
    size_bytes: int
    disposition: str = "attachment"

    @classmethod
    def from_bytes(cls, data: bytes, filename: str, content_type: str) -> "Attachment":
        return cls(
            content=base64.b64encode(data).decode("ascii"),
            filename=filename,
            content_type=content_type,
            size_bytes=len(data),
        )

    @property
    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.content)

    def to_dict(self) -> dict:
        """Convert to the provider attachment payload."""
        return {
            "content": self.content,
            "filename": self.filename,
            "type": self.content_type,
            "disposition": self.disposition,
        }
