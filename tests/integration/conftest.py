"""
Integration test fixtures and configuration.

Integration tests run the handler against moto SES and fake HTTP
file storage / backup endpoints.
"""

import os

import boto3
import pytest
from moto import mock_aws

# Set integration test environment
os.environ["INTEGRATION_TEST"] = "true"


@pytest.fixture
def integration_ses():
    """
    Mocked SES with a verified sender identity.

    Sent mail is counted by get_send_quota()["SentLast24Hours"].
    """
    with mock_aws():
        ses = boto3.client("ses", region_name="us-east-1")
        ses.verify_email_identity(EmailAddress="test@example.com")
        yield ses
