"""
Submission Models

Pydantic models for the inbound submission-created webhook body and the
records derived from it during one invocation.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Field name -> string, or list of strings for multi-value fields
Submission = dict[str, Any]


class FileReference(BaseModel):
    """
    Pointer to an uploaded file, produced by the form upload subsystem.

    Entries are accepted as they come: a missing or non-string url becomes
    "" and numeric metadata is stringified. The fetcher skips references
    without a usable URL.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    url: str = Field(default="", description="Public URL of the uploaded file")
    filename: str | None = Field(default=None, description="Original filename")
    content_type: str | None = Field(
        default=None,
        alias="type",
        description="MIME type reported by the uploader",
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_entry(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"url": value}
        if not isinstance(value, (dict, FileReference)):
            return {}
        return value

    @field_validator("url", mode="before")
    @classmethod
    def _url_as_text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("filename", "content_type", mode="before")
    @classmethod
    def _metadata_as_text(cls, value: Any) -> str | None:
        if isinstance(value, str):
            return value or None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    @property
    def has_url(self) -> bool:
        return bool(self.url)


class SubmissionPayload(BaseModel):
    """The `payload` envelope of a submission-created event."""

    model_config = ConfigDict(extra="ignore")

    data: Submission = Field(default_factory=dict, description="Form field values")
    files: list[FileReference] = Field(default_factory=list, description="Uploaded files")

    @field_validator("data", "files", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info) -> Any:
        if value is None:
            return {} if info.field_name == "data" else []
        return value


class SubmissionEvent(BaseModel):
    """Top-level webhook body: `{"payload": {...}}`."""

    model_config = ConfigDict(extra="ignore")

    payload: SubmissionPayload = Field(default_factory=SubmissionPayload)

    @field_validator("payload", mode="before")
    @classmethod
    def _null_payload_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


@dataclass(frozen=True)
class ParsedSubmission:
    """Submission data and file references extracted from one webhook body."""

    data: Submission
    files: tuple[FileReference, ...] = ()

    @property
    def file_urls(self) -> list[str]:
        return [f.url for f in self.files if f.has_url]
