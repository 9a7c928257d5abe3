"""
Payload Parser Module

Extracts form field values and uploaded-file references from the
submission-created webhook event.
"""

import base64
import binascii
import json
from typing import Any

import structlog
from pydantic import ValidationError

from notifier.exceptions import BadPayloadError
from notifier.models.submission import ParsedSubmission, SubmissionEvent

log = structlog.get_logger()


def extract_event_body(event: dict[str, Any]) -> str | None:
    """
    Get the raw webhook body from a Lambda/Netlify function event.

    Handles base64-encoded bodies and direct invocations where the
    envelope is passed as the event itself (for testing).

    Raises:
        BadPayloadError: If a base64-flagged body cannot be decoded
    """
    if "body" not in event and "payload" in event:
        return json.dumps({"payload": event["payload"]})

    body = event.get("body")
    if body is None or not event.get("isBase64Encoded"):
        return body

    try:
        return base64.b64decode(body, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise BadPayloadError(f"body is not valid base64 UTF-8: {e}") from e


def parse_submission_body(body: str | bytes | None) -> ParsedSubmission:
    """
    Parse a webhook body into submission data and file references.

    An empty body, or a missing payload/data/files, yields empty defaults.
    Individual file entries are never rejected; unusable ones are skipped
    later by the attachment fetcher.

    Args:
        body: Raw request body

    Returns:
        ParsedSubmission with data and files

    Raises:
        BadPayloadError: If the body is not JSON or has the wrong shape
    """
    try:
        raw = json.loads(body or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        log.error("webhook_body_not_json", error=str(e))
        raise BadPayloadError(f"malformed JSON: {e}") from e

    if not isinstance(raw, dict):
        log.error("webhook_body_not_object", body_type=type(raw).__name__)
        raise BadPayloadError(f"expected a JSON object, got {type(raw).__name__}")

    try:
        event = SubmissionEvent.model_validate(raw)
    except ValidationError as e:
        log.error(
            "webhook_payload_invalid",
            errors=[f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        )
        raise BadPayloadError(f"unexpected payload shape ({e.error_count()} errors)") from e

    parsed = ParsedSubmission(
        data=event.payload.data,
        files=tuple(event.payload.files),
    )

    log.info(
        "webhook_payload_parsed",
        field_count=len(parsed.data),
        file_count=len(parsed.files),
        form_name=parsed.data.get("form-name"),
    )

    return parsed
