"""
SubmissionCreated Lambda Handler

Main entry point for form submission notifications.
Formats the submitted fields into an email, attaches uploaded photos,
sends it through the email provider and mirrors the submission to the
backup webhook.

Trigger: submission-created webhook (Netlify Forms or API Gateway POST)
Output: Notification email; optional backup webhook POST

Flow:
1. Validate delivery configuration (500 if missing)
2. Parse webhook body (400 if malformed)
3. Build subject, HTML and text bodies
4. Fetch attachments (failures degrade to fewer attachments)
5. Send email (502 if the provider fails)
6. Forward submission to backup webhook (detached, best-effort)
"""

import asyncio
import logging
from collections.abc import Sequence
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from lambdas.submission_created.attachment_fetcher import FetchResult, fetch_attachments
from lambdas.submission_created.content_formatter import build_email_content
from lambdas.submission_created.payload_parser import (
    extract_event_body,
    parse_submission_body,
)
from notifier.config import Settings, get_settings
from notifier.exceptions import BadPayloadError, ConfigError, ProviderError
from notifier.models.email import Attachment
from notifier.models.submission import FileReference
from notifier.state_machine import DeliveryOutcome, HandlerState, validate_transition
from notifier.tools.backup import forward_submission_detached
from notifier.tools.email import send_notification_email

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()

INTERNAL_ERROR_BODY = "Internal server error"


@dataclass
class HandlerResult:
    """Outcome of one invocation plus what happened along the way."""

    outcome: DeliveryOutcome
    states: list[HandlerState] = field(default_factory=list)
    message_id: str | None = None
    attachment_count: int = 0
    backup: Future | None = None

    @property
    def status_code(self) -> int:
        return self.outcome.status_code

    @property
    def body(self) -> str:
        return self.outcome.response_body

    def to_response(self) -> dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": {"Content-Type": "text/plain; charset=utf-8"},
            "body": self.body,
        }


class _Run:
    """Tracks the state history of one invocation."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        self.states = [HandlerState.VALIDATING_CONFIG]

    @property
    def state(self) -> HandlerState:
        return self.states[-1]

    def advance(self, new_state: HandlerState) -> None:
        validate_transition(self.state, new_state)
        log.debug(
            "handler_state_changed",
            request_id=self.request_id,
            from_state=self.state.value,
            to_state=new_state.value,
        )
        self.states.append(new_state)

    def finish(self, terminal_state: HandlerState, **extra: Any) -> HandlerResult:
        self.advance(terminal_state)
        return HandlerResult(
            outcome=DeliveryOutcome.from_state(terminal_state),
            states=list(self.states),
            **extra,
        )


def _fetch_attachments_safely(
    parsed_files: Sequence[FileReference],
    settings: Settings,
    async_client: httpx.AsyncClient | None,
    request_id: str,
) -> list[Attachment]:
    """Run the attachment fetcher; any top-level failure means no attachments."""
    if not parsed_files:
        return []

    try:
        result: FetchResult = asyncio.run(
            fetch_attachments(
                parsed_files,
                client=async_client,
                timeout=settings.http_timeout_seconds,
            )
        )
    except Exception as e:
        log.error(
            "attachment_processing_failed",
            request_id=request_id,
            error=str(e),
            error_type=type(e).__name__,
            action="sending_without_attachments",
        )
        return []

    return result.attachments


def handle_submission_event(
    event: dict[str, Any],
    *,
    settings: Settings | None = None,
    http_client: httpx.Client | None = None,
    async_http_client: httpx.AsyncClient | None = None,
    request_id: str = "local",
) -> HandlerResult:
    """
    Run the submission-to-notification pipeline for one webhook event.

    Args:
        event: Function event carrying the webhook body
        settings: Override settings (default: cached settings)
        http_client: Client for provider and backup calls
        async_http_client: Client for attachment downloads
        request_id: Invocation ID for log correlation

    Returns:
        HandlerResult with outcome, visited states and backup future
    """
    settings = settings or get_settings()
    run = _Run(request_id)

    try:
        settings.require_delivery_settings()
    except ConfigError as e:
        log.error("missing_required_configuration", request_id=request_id, missing=e.missing)
        return run.finish(HandlerState.CONFIG_ERROR)

    run.advance(HandlerState.PARSING_PAYLOAD)
    try:
        parsed = parse_submission_body(extract_event_body(event))
    except BadPayloadError as e:
        log.error("invalid_webhook_payload", request_id=request_id, reason=e.reason)
        return run.finish(HandlerState.BAD_PAYLOAD)

    run.advance(HandlerState.FORMATTING)
    content = build_email_content(parsed.data, parsed.files)

    run.advance(HandlerState.FETCHING_ATTACHMENTS)
    attachments = _fetch_attachments_safely(
        parsed.files, settings, async_http_client, request_id
    )

    run.advance(HandlerState.DISPATCHING)
    try:
        message_id = send_notification_email(
            settings.recipients,
            settings.from_email,
            content,
            attachments,
            settings=settings,
            client=http_client,
        )
    except ProviderError as e:
        log.error(
            "email_provider_error",
            request_id=request_id,
            provider=e.provider,
            status_code=e.status_code,
            detail=e.detail,
        )
        return run.finish(HandlerState.PROVIDER_ERROR, attachment_count=len(attachments))

    run.advance(HandlerState.BACKING_UP)
    backup = forward_submission_detached(
        parsed.data,
        parsed.file_urls,
        settings=settings,
        client=http_client,
    )
    if backup is not None and not settings.backup_detached:
        backup.result()

    log.info(
        "submission_notification_complete",
        request_id=request_id,
        message_id=message_id,
        attachment_count=len(attachments),
        backup_started=backup is not None,
    )

    return run.finish(
        HandlerState.DONE,
        message_id=message_id,
        attachment_count=len(attachments),
        backup=backup,
    )


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    Function handler for the submission-created event.

    Args:
        event: Event whose body is the webhook JSON
        context: Lambda context

    Returns:
        Response dict with statusCode and a short plaintext body
    """
    request_id = getattr(context, "aws_request_id", "local")

    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings.log_level)

        log.info(
            "processing_submission_created",
            request_id=request_id,
            event_keys=list(event.keys()),
        )

        result = handle_submission_event(event, settings=settings, request_id=request_id)
    except Exception as e:
        log.error(
            "lambda_handler_failed",
            request_id=request_id,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=True,
        )
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "text/plain; charset=utf-8"},
            "body": INTERNAL_ERROR_BODY,
        }

    log.info(
        "submission_created_processed",
        request_id=request_id,
        outcome=result.outcome.value,
        status_code=result.status_code,
    )

    return result.to_response()
