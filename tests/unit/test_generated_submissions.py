"""
Formatter invariants checked over randomly generated submissions.
"""

import pytest

from lambdas.submission_created.content_formatter import EXCLUDED_FIELDS, build_email_content, build_rows
from tests.utils.event_generator import MockSubmissionGenerator


@pytest.fixture
def generator() -> MockSubmissionGenerator:
    return MockSubmissionGenerator(seed=1234)


@pytest.mark.parametrize("round_", range(25))
def test_sales_consultant_always_last(generator, round_):
    submission = generator.generate_submission()

    rows = build_rows(submission)

    assert rows[-1].key == "salesConsultant"
    assert all(r.key != "salesConsultant" for r in rows[:-1])
    assert [r.key for r in rows[:-1]] == sorted(r.key for r in rows[:-1])


@pytest.mark.parametrize("round_", range(25))
def test_spam_and_blank_fields_never_rendered(generator, round_):
    submission = generator.generate_submission(blank_fields=3)

    rows = build_rows(submission)
    content = build_email_content(submission)

    keys = {r.key for r in rows}
    assert not keys & EXCLUDED_FIELDS
    assert not any(k.startswith("optionalField") for k in keys)
    for key in EXCLUDED_FIELDS:
        assert f"{submission[key]}" not in content.text_body.split("\n")


def test_rows_without_consultant(generator):
    submission = generator.generate_submission(include_consultant=False)

    keys = [r.key for r in build_rows(submission)]

    assert keys == sorted(keys)
