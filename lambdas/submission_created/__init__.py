"""
SubmissionCreated Lambda

Sends a notification email for every form submission.
Formats submitted fields, attaches uploaded photos, and mirrors the
submission to an optional backup webhook.

Trigger: submission-created webhook
Output: Notification email via SendGrid or SES

Flow:
    Form Submission
    → submission-created webhook
    → This Lambda
    → Email provider
    → Backup webhook (optional)
"""

from lambdas.submission_created.attachment_fetcher import FetchResult, fetch_attachments
from lambdas.submission_created.content_formatter import build_email_content
from lambdas.submission_created.handler import (
    HandlerResult,
    handle_submission_event,
    lambda_handler,
)
from lambdas.submission_created.payload_parser import (
    extract_event_body,
    parse_submission_body,
)

__all__ = [
    "FetchResult",
    "HandlerResult",
    "build_email_content",
    "extract_event_body",
    "fetch_attachments",
    "handle_submission_event",
    "lambda_handler",
    "parse_submission_body",
]
