"""
Backup Webhook Tools

Best-effort mirror of a raw submission to a secondary store (for example a
Google Sheets Apps Script endpoint). Failures are logged and never raised.
"""

from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from notifier.config import Settings, get_settings
from notifier.exceptions import BackupError

log = structlog.get_logger()

# Detached backup POSTs run here; the response path never joins them.
_backup_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="backup-webhook")


def _iso_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_backup_record(
    submission: dict[str, Any],
    file_urls: Sequence[str],
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Original fields plus the uploaded file URLs and a forwarding timestamp."""
    return {**submission, "fileUrls": list(file_urls), "_ts": _iso_timestamp(now)}


def _post_backup(
    url: str,
    record: dict[str, Any],
    params: dict[str, str],
    settings: Settings,
    client: httpx.Client | None,
) -> None:
    """
    Raises:
        BackupError: On network failure or a non-2xx response
    """
    try:
        if client is None:
            with httpx.Client(timeout=settings.http_timeout_seconds) as own_client:
                response = own_client.post(url, json=record, params=params)
        else:
            response = client.post(
                url,
                json=record,
                params=params,
                timeout=settings.http_timeout_seconds,
            )
    except httpx.HTTPError as e:
        raise BackupError(url=url, reason=str(e) or type(e).__name__) from e

    if not response.is_success:
        raise BackupError(
            url=url,
            reason="non-success response",
            status_code=response.status_code,
        )


def forward_submission(
    submission: dict[str, Any],
    file_urls: Sequence[str],
    *,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
) -> bool:
    """
    POST a JSON copy of the submission to the backup webhook.

    Args:
        submission: Form field values as received
        file_urls: URLs of the uploaded files
        settings: Override settings (default: cached settings)
        client: HTTP client (default: a new client per call)

    Returns:
        True if the backup endpoint accepted the record, False if backup is
        not configured or the POST failed
    """
    settings = settings or get_settings()
    if not settings.backup_enabled:
        return False

    url = settings.backup_webhook_url
    params = {"secret": settings.backup_shared_secret} if settings.backup_shared_secret else {}
    record = build_backup_record(submission, file_urls)

    try:
        _post_backup(url, record, params, settings, client)
    except BackupError as e:
        log.warning(
            "backup_webhook_failed",
            reason=e.reason,
            status_code=e.status_code,
        )
        return False
    except Exception as e:
        log.warning("backup_webhook_failed", reason=str(e), error_type=type(e).__name__)
        return False

    log.info("backup_webhook_sent", file_count=len(record["fileUrls"]))
    return True


def _log_detached_result(future: Future) -> None:
    if future.cancelled():
        log.warning("backup_webhook_cancelled")
        return
    error = future.exception()
    if error is not None:
        log.warning("backup_webhook_crashed", error=str(error))


def forward_submission_detached(
    submission: dict[str, Any],
    file_urls: Sequence[str],
    *,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
) -> Future | None:
    """
    Start forward_submission on a background thread and return immediately.

    Returns:
        Future resolving to forward_submission's result, or None when no
        backup webhook is configured
    """
    settings = settings or get_settings()
    if not settings.backup_enabled:
        log.debug("backup_webhook_not_configured")
        return None

    future = _backup_executor.submit(
        forward_submission,
        dict(submission),
        list(file_urls),
        settings=settings,
        client=client,
    )
    future.add_done_callback(_log_detached_result)
    return future
