"""
Attachment Fetcher Module

Downloads uploaded files concurrently and turns them into email attachments
under count, per-file and cumulative size caps. A failed file is logged and
skipped; it never fails the batch.
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

import httpx
import structlog

from notifier.exceptions import AttachmentError
from notifier.models.email import Attachment
from notifier.models.submission import FileReference

log = structlog.get_logger()

MAX_ATTACHMENTS = 10
MAX_ATTACHMENT_BYTES = 7 * 1024 * 1024
MAX_TOTAL_ATTACHMENT_BYTES = 20 * 1024 * 1024
DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class FetchResult:
    """Admitted attachments plus the files that were skipped and why."""

    attachments: list[Attachment] = field(default_factory=list)
    skipped: list[AttachmentError] = field(default_factory=list)
    ignored_count: int = 0  # References beyond the count cap

    @property
    def total_bytes(self) -> int:
        return sum(a.size_bytes for a in self.attachments)


def _filename_for(ref: FileReference, index: int) -> str:
    if ref.filename:
        return ref.filename
    name = PurePosixPath(unquote(urlparse(ref.url).path)).name
    return name or f"attachment-{index + 1}"


def _content_type_for(ref: FileReference, response_type: str | None) -> str:
    if ref.content_type:
        return ref.content_type
    if response_type:
        media_type = response_type.split(";", 1)[0].strip()
        if media_type:
            return media_type
    return DEFAULT_CONTENT_TYPE


async def _download(
    client: httpx.AsyncClient,
    ref: FileReference,
    max_file_bytes: int,
    timeout: float,
) -> tuple[bytes, str | None]:
    """
    Stream one file, abandoning it as soon as it passes the per-file cap.

    Raises:
        AttachmentError: On a non-2xx status or an oversized body
        httpx.HTTPError: On network failure
    """
    async with client.stream("GET", ref.url, timeout=timeout) as response:
        if not response.is_success:
            raise AttachmentError(
                url=ref.url,
                reason=f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > max_file_bytes:
            raise AttachmentError(
                url=ref.url,
                reason=f"declared size {declared} exceeds {max_file_bytes} byte limit",
            )

        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            size += len(chunk)
            if size > max_file_bytes:
                raise AttachmentError(
                    url=ref.url,
                    reason=f"exceeds {max_file_bytes} byte limit",
                )
            chunks.append(chunk)

        return b"".join(chunks), response.headers.get("Content-Type")


async def _fetch_one(
    client: httpx.AsyncClient,
    ref: FileReference,
    index: int,
    max_file_bytes: int,
    timeout: float,
) -> Attachment | AttachmentError:
    """Fetch a single file; every failure comes back as an AttachmentError."""
    try:
        if not ref.has_url:
            raise AttachmentError(url=ref.url, reason="missing file URL")
        data, response_type = await _download(client, ref, max_file_bytes, timeout)
    except AttachmentError as e:
        error = e
    except Exception as e:
        error = AttachmentError(url=ref.url, reason=f"{type(e).__name__}: {e}")
    else:
        return Attachment.from_bytes(
            data,
            filename=_filename_for(ref, index),
            content_type=_content_type_for(ref, response_type),
        )

    log.warning(
        "attachment_fetch_failed",
        url=ref.url,
        filename=ref.filename,
        reason=error.reason,
        status_code=error.status_code,
    )
    return error


async def fetch_attachments(
    files: Sequence[FileReference],
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    max_count: int = MAX_ATTACHMENTS,
    max_file_bytes: int = MAX_ATTACHMENT_BYTES,
    max_total_bytes: int = MAX_TOTAL_ATTACHMENT_BYTES,
) -> FetchResult:
    """
    Fetch uploaded files and prepare them as email attachments.

    Only the first max_count references are fetched. Fetches run
    concurrently; the cumulative cap is then applied in reference order, so
    the admitted set is deterministic and never exceeds max_total_bytes.

    Args:
        files: File references from the submission
        client: HTTP client (default: a new client for this batch)
        timeout: Per-request timeout in seconds
        max_count: Maximum number of files considered
        max_file_bytes: Per-file size cap
        max_total_bytes: Cumulative size cap

    Returns:
        FetchResult with admitted attachments and skipped files
    """
    considered = list(files[:max_count])
    result = FetchResult(ignored_count=max(len(files) - max_count, 0))

    if result.ignored_count:
        log.info(
            "attachments_over_count_limit",
            file_count=len(files),
            max_count=max_count,
            ignored_count=result.ignored_count,
        )

    if not considered:
        return result

    if client is None:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
            outcomes = await asyncio.gather(
                *(_fetch_one(own_client, ref, i, max_file_bytes, timeout)
                  for i, ref in enumerate(considered))
            )
    else:
        outcomes = await asyncio.gather(
            *(_fetch_one(client, ref, i, max_file_bytes, timeout)
              for i, ref in enumerate(considered))
        )

    total = 0
    for ref, outcome in zip(considered, outcomes):
        if isinstance(outcome, AttachmentError):
            result.skipped.append(outcome)
            continue

        if total + outcome.size_bytes > max_total_bytes:
            error = AttachmentError(
                url=ref.url,
                reason=f"would exceed {max_total_bytes} byte total limit",
            )
            log.warning(
                "attachment_over_total_limit",
                url=ref.url,
                filename=outcome.filename,
                size_bytes=outcome.size_bytes,
                running_total=total,
            )
            result.skipped.append(error)
            continue

        total += outcome.size_bytes
        result.attachments.append(outcome)

    log.info(
        "attachments_fetched",
        attached_count=len(result.attachments),
        skipped_count=len(result.skipped),
        ignored_count=result.ignored_count,
        total_bytes=total,
    )

    return result
