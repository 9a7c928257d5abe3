"""
Content Formatter Module

Turns schema-less form data into the notification subject, HTML body and
plain-text body. Rows are sorted by field name, with the Sales Consultant
row always rendered last.
"""

import html
import json
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Final

from notifier.models.email import EmailContent
from notifier.models.submission import FileReference

EXCLUDED_FIELDS: Final[frozenset[str]] = frozenset({
    "form-name",
    "company",
    "bot-field",
    "honeypot",
})

LABEL_OVERRIDES: Final[dict[str, str]] = {
    "salesConsultant": "Sales Consultant",
}

# Rendered after every other row regardless of sort position
TAIL_FIELDS: Final[frozenset[str]] = frozenset({"salesConsultant"})

HEADING = "New Trade-In Lead"
SUBJECT_PREFIX = "New Trade-In Lead –"
NO_PHOTOS = "No photos uploaded."

_FONT = "font-family:system-ui,Segoe UI,Roboto,Helvetica,Arial;"
_CELL = f"{_FONT}font-size:14px;color:#111827;"
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class FieldRow:
    """One rendered field: source key, display label and display value."""

    key: str
    label: str
    value: str


def stringify_value(value: Any) -> str:
    """Render a field value as display text; lists are comma-joined."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify_value(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def has_value(value: Any) -> bool:
    """False for None and for values whose trimmed text is empty."""
    return value is not None and stringify_value(value).strip() != ""


def label_for(key: str) -> str:
    """
    Friendly label for a field name.

    camelCase and snake_case are split into words and each word is
    capitalized: "tradeInValue" -> "Trade In Value", "vin_number" -> "Vin Number".
    """
    if key in LABEL_OVERRIDES:
        return LABEL_OVERRIDES[key]
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", key.replace("_", " "))
    return " ".join(word[:1].upper() + word[1:] for word in spaced.split(" "))


def build_rows(submission: dict[str, Any]) -> list[FieldRow]:
    """Rendered rows in final order: sorted fields, then tail fields."""
    normal_rows: list[FieldRow] = []
    tail_rows: list[FieldRow] = []

    for key in sorted(submission):
        if key in EXCLUDED_FIELDS:
            continue
        value = submission[key]
        if not has_value(value):
            continue

        row = FieldRow(key=key, label=label_for(key), value=stringify_value(value))
        if key in TAIL_FIELDS:
            tail_rows.append(row)
        else:
            normal_rows.append(row)

    return normal_rows + tail_rows


def build_subject(submission: dict[str, Any]) -> str:
    parts = [stringify_value(submission.get(k)) for k in ("year", "make", "model")]
    return _WHITESPACE.sub(" ", f"{SUBJECT_PREFIX} {' '.join(parts)}").strip()


def _escape(text: str) -> str:
    return html.escape(text, quote=False)


def render_html(rows: Sequence[FieldRow], files: Sequence[FileReference]) -> str:
    table_rows = "".join(
        f"<tr>"
        f'<th align="left" style="{_CELL}padding:6px 10px 6px 0;">{_escape(row.label)}</th>'
        f'<td style="{_CELL}padding:6px 0;">{_escape(row.value)}</td>'
        f"</tr>"
        for row in rows
    )

    if files:
        links = "".join(
            f'<li><a href="{html.escape(f.url, quote=True)}">'
            f"{_escape(f.filename or f.url)}</a></li>"
            for f in files
        )
        photos = f"<ul>{links}</ul>"
    else:
        photos = f"<p>{NO_PHOTOS}</p>"

    return (
        f'<h2 style="margin:0 0 12px 0;{_FONT}">{HEADING}</h2>'
        f'<table cellpadding="6" cellspacing="0" border="0" style="border-collapse:collapse;">'
        f"{table_rows}"
        f"</table>"
        f'<h3 style="margin-top:16px;">Photos</h3>'
        f"{photos}"
    )


def render_text(rows: Sequence[FieldRow], files: Sequence[FileReference]) -> str:
    lines = [f"{row.label}: {row.value}" for row in rows]
    photos = "\n".join(f.url for f in files) or NO_PHOTOS
    fields = "\n".join(lines)
    photos_section = f"Photos:\n{photos}"
    return f"{fields}\n\n{photos_section}" if fields else photos_section


def build_email_content(
    submission: dict[str, Any],
    files: Sequence[FileReference] = (),
) -> EmailContent:
    """
    Build the notification email for one submission.

    Never raises for odd field values; they are stringified or omitted.

    Args:
        submission: Form field values
        files: Uploaded file references; those with a URL are listed in
            the Photos section

    Returns:
        EmailContent with subject, HTML body and text body
    """
    rows = build_rows(submission)
    files = [f for f in files if f.has_url]
    return EmailContent(
        subject=build_subject(submission),
        html_body=render_html(rows, files),
        text_body=render_text(rows, files),
    )
