"""
Pytest Configuration and Shared Fixtures

Provides settings, sample submissions, fake HTTP transports and moto SES.
"""

import asyncio
import json
import os
from typing import Any, Callable

import boto3
import httpx
import pytest
from moto import mock_aws

# Set test environment before importing application modules
for _var in (
    "SENDGRID_API_KEY",
    "FROM_EMAIL",
    "TO_EMAIL",
    "SHEETS_WEBHOOK_URL",
    "SHEETS_SHARED_SECRET",
):
    os.environ.pop(_var, None)
os.environ["NOTIFIER_ENVIRONMENT"] = "development"
os.environ["NOTIFIER_AWS_REGION"] = "us-east-1"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

from notifier.config import Settings, get_settings  # noqa: E402

SENDGRID_URL = "https://api.sendgrid.test/v3/mail/send"
BACKUP_URL = "https://backup.example.com/exec"
SENDER = "leads@dealer.example.com"
RECIPIENTS = "sales@dealer.example.com, manager@dealer.example.com"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; start every test from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# --- Settings Fixtures ---


@pytest.fixture
def settings() -> Settings:
    """Complete SendGrid configuration without a backup webhook."""
    return Settings(
        email_provider="sendgrid",
        sendgrid_api_key="SG.test-key",
        sendgrid_api_url=SENDGRID_URL,
        from_email=SENDER,
        to_email=RECIPIENTS,
        http_timeout_seconds=5.0,
    )


@pytest.fixture
def backup_settings(settings: Settings) -> Settings:
    """SendGrid configuration with a backup webhook and shared secret."""
    return settings.model_copy(
        update={
            "backup_webhook_url": BACKUP_URL,
            "backup_shared_secret": "s3cr3t",
            "backup_detached": False,
        }
    )


@pytest.fixture
def ses_settings() -> Settings:
    """SES configuration; no API key needed."""
    return Settings(
        email_provider="ses",
        from_email="test@example.com",
        to_email="sales@example.com",
        aws_region="us-east-1",
    )


# --- Submission Fixtures ---


@pytest.fixture
def sample_submission() -> dict[str, Any]:
    """Trade-in form fields as posted by the site."""
    return {
        "form-name": "trade-in",
        "bot-field": "",
        "year": "2020",
        "make": "Subaru",
        "model": "Forester",
        "trim": "Premium",
        "salesConsultant": "Jane Doe",
        "firstName": "Sam",
        "lastName": "Rivera",
        "phone": "555-0100",
    }


@pytest.fixture
def sample_files() -> list[dict[str, Any]]:
    """Uploaded photo references as sent in payload.files."""
    return [
        {
            "url": "https://uploads.example.com/front.jpg",
            "filename": "front.jpg",
            "type": "image/jpeg",
        },
        {
            "url": "https://uploads.example.com/interior.png",
            "filename": "interior.png",
            "type": "image/png",
        },
    ]


@pytest.fixture
def webhook_body(sample_submission, sample_files) -> str:
    """Raw submission-created webhook body."""
    return json.dumps({"payload": {"data": sample_submission, "files": sample_files}})


@pytest.fixture
def webhook_event(webhook_body: str) -> dict[str, Any]:
    """Function event carrying the webhook body."""
    return {"httpMethod": "POST", "body": webhook_body, "isBase64Encoded": False}


# --- HTTP Fixtures ---


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]


@pytest.fixture
def file_bodies() -> dict[str, bytes]:
    """Bytes served for each upload URL."""
    return {
        "https://uploads.example.com/front.jpg": b"\xff\xd8jpeg-front",
        "https://uploads.example.com/interior.png": b"\x89PNG-interior",
    }


@pytest.fixture
def upstream(file_bodies):
    """
    Fake upstream services: file storage, SendGrid and the backup webhook.

    Tweak behaviour per test via upstream.sendgrid_status / backup_status.
    """

    class Upstream:
        sendgrid_status = 202
        sendgrid_body = ""
        backup_status = 200

        def handle(self, request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            if request.url.host == "uploads.example.com":
                if url in file_bodies:
                    return httpx.Response(200, content=file_bodies[url])
                return httpx.Response(404)
            if request.url.host == "api.sendgrid.test":
                return httpx.Response(
                    self.sendgrid_status,
                    text=self.sendgrid_body,
                    headers={"X-Message-Id": "sg-msg-1"},
                )
            if request.url.host == "backup.example.com":
                return httpx.Response(self.backup_status)
            return httpx.Response(500)

    return Upstream()


@pytest.fixture
def transport(upstream) -> RecordingTransport:
    return RecordingTransport(upstream.handle)


@pytest.fixture
def http_client(transport):
    with httpx.Client(transport=transport) as client:
        yield client


@pytest.fixture
def async_http_client(transport):
    client = httpx.AsyncClient(transport=transport)
    yield client
    asyncio.run(client.aclose())


# --- AWS Mocking Fixtures ---


@pytest.fixture
def mock_ses():
    """Create a mocked SES client with verified sender identity."""
    with mock_aws():
        ses = boto3.client("ses", region_name="us-east-1")
        ses.verify_email_identity(EmailAddress="test@example.com")
        yield ses
