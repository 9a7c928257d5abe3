"""
Outbound tools: email delivery and backup webhook forwarding.
"""

from notifier.tools.backup import (
    build_backup_record,
    forward_submission,
    forward_submission_detached,
)
from notifier.tools.email import (
    build_mime_message,
    build_sendgrid_message,
    send_notification_email,
)

__all__ = [
    "build_backup_record",
    "build_mime_message",
    "build_sendgrid_message",
    "forward_submission",
    "forward_submission_detached",
    "send_notification_email",
]
