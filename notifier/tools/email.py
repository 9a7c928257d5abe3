"""
Email Tools

Single-attempt delivery of the notification email through SendGrid
(HTTP v3 API) or Amazon SES (SendRawEmail). No retries: there is no
idempotency key that would make a second send safe.
"""

from collections.abc import Sequence
from email.message import EmailMessage

import boto3
import httpx
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from notifier.config import Settings, get_settings
from notifier.exceptions import ProviderError
from notifier.models.email import Attachment, EmailContent

log = structlog.get_logger()


def _get_client(settings: Settings):
    """Get SES client."""
    return boto3.client("ses", **settings.ses_config)


def build_sendgrid_message(
    recipients: Sequence[str],
    sender: str,
    content: EmailContent,
    attachments: Sequence[Attachment] = (),
) -> dict:
    """
    Build a SendGrid v3 mail/send request body.

    All recipients share one personalization, so each sees the others
    in the To header.
    """
    message = {
        "personalizations": [{"to": [{"email": r} for r in recipients]}],
        "from": {"email": sender},
        "subject": content.subject,
        "content": [
            {"type": "text/plain", "value": content.text_body},
            {"type": "text/html", "value": content.html_body},
        ],
    }
    if attachments:
        message["attachments"] = [a.to_dict() for a in attachments]
    return message


def build_mime_message(
    recipients: Sequence[str],
    sender: str,
    content: EmailContent,
    attachments: Sequence[Attachment] = (),
) -> EmailMessage:
    """Build a multipart MIME message for SES SendRawEmail."""
    msg = EmailMessage()
    msg["Subject"] = content.subject
    msg["From"] = sender
    msg["To"] = ", ".join(recipients)
    msg.set_content(content.text_body)
    msg.add_alternative(content.html_body, subtype="html")

    for attachment in attachments:
        maintype, _, subtype = attachment.content_type.partition("/")
        if not subtype:
            maintype, subtype = "application", "octet-stream"
        msg.add_attachment(
            attachment.raw_bytes,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.filename,
        )

    return msg


def _send_via_sendgrid(
    recipients: Sequence[str],
    sender: str,
    content: EmailContent,
    attachments: Sequence[Attachment],
    settings: Settings,
    client: httpx.Client | None,
) -> str:
    body = build_sendgrid_message(recipients, sender, content, attachments)
    headers = {"Authorization": f"Bearer {settings.sendgrid_api_key}"}

    try:
        if client is None:
            with httpx.Client(timeout=settings.http_timeout_seconds) as own_client:
                response = own_client.post(settings.sendgrid_api_url, json=body, headers=headers)
        else:
            response = client.post(
                settings.sendgrid_api_url,
                json=body,
                headers=headers,
                timeout=settings.http_timeout_seconds,
            )
    except httpx.HTTPError as e:
        log.error("sendgrid_request_failed", error=str(e), error_type=type(e).__name__)
        raise ProviderError(provider="sendgrid", detail=str(e)) from e

    if not response.is_success:
        log.error(
            "sendgrid_send_failed",
            status_code=response.status_code,
            response_body=response.text,
        )
        raise ProviderError(
            provider="sendgrid",
            status_code=response.status_code,
            detail=response.text,
        )

    return response.headers.get("X-Message-Id", "")


def _send_via_ses(
    recipients: Sequence[str],
    sender: str,
    content: EmailContent,
    attachments: Sequence[Attachment],
    settings: Settings,
) -> str:
    msg = build_mime_message(recipients, sender, content, attachments)
    send_params = {
        "Source": sender,
        "Destinations": list(recipients),
        "RawMessage": {"Data": msg.as_bytes()},
    }
    if settings.ses_configuration_set:
        send_params["ConfigurationSetName"] = settings.ses_configuration_set

    try:
        response = _get_client(settings).send_raw_email(**send_params)
    except ClientError as e:
        error = e.response.get("Error", {})
        log.error(
            "ses_send_failed",
            error_code=error.get("Code"),
            error_message=error.get("Message"),
        )
        raise ProviderError(
            provider="ses",
            status_code=e.response.get("ResponseMetadata", {}).get("HTTPStatusCode"),
            detail=error,
        ) from e
    except BotoCoreError as e:
        log.error("ses_request_failed", error=str(e), error_type=type(e).__name__)
        raise ProviderError(provider="ses", detail=str(e)) from e

    return response["MessageId"]


def send_notification_email(
    recipients: Sequence[str],
    sender: str,
    content: EmailContent,
    attachments: Sequence[Attachment] = (),
    *,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
) -> str:
    """
    Send the notification email through the configured provider.

    Args:
        recipients: Recipient addresses (non-empty)
        sender: Verified sender address
        content: Subject, HTML and text bodies
        attachments: Fetched attachments, possibly empty
        settings: Override settings (default: cached settings)
        client: HTTP client for SendGrid (default: a new client per call)

    Returns:
        Provider message ID, or "" when the provider does not return one

    Raises:
        ProviderError: If the provider rejects the message or is unreachable
    """
    settings = settings or get_settings()
    provider = settings.email_provider

    log.info(
        "sending_notification_email",
        provider=provider,
        recipient_count=len(recipients),
        subject=content.subject[:80],
        attachment_count=len(attachments),
        attachment_bytes=sum(a.size_bytes for a in attachments),
    )

    if provider == "ses":
        message_id = _send_via_ses(recipients, sender, content, attachments, settings)
    else:
        message_id = _send_via_sendgrid(
            recipients, sender, content, attachments, settings, client
        )

    log.info("notification_email_sent", provider=provider, message_id=message_id)

    return message_id
