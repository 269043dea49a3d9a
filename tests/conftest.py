"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('FORWARD_TO_ADDRESS', 'forward@relay.example.com')
os.environ.setdefault('VERIFIED_FROM_ADDRESS', 'forwarder@relay.example.com')
os.environ.setdefault('SUBJECT_PREFIX', '[FWD] ')
os.environ.setdefault('S3_BUCKET', 'ses-inbound-test')
os.environ.setdefault('S3_EMAIL_PREFIX', 'incoming/')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    # Environment variables are already set above
    yield


@pytest.fixture
def ses_event():
    """Load sample SES receipt-rule event from test data."""
    import json
    with open(os.path.join(os.path.dirname(__file__), 'events', 'ses-event.json')) as f:
        return json.load(f)


@pytest.fixture
def sample_email_content():
    """Sample raw email as SES stores it in S3."""
    return (
        b"Return-Path: <alice@example.com>\r\n"
        b"DKIM-Signature: v=1; a=rsa-sha256; d=example.com; s=sel;\r\n"
        b"\tbh=abc123=; b=def456\r\n"
        b"From: Alice Example <alice@example.com>\r\n"
        b"To: Bob <bob@example.org>\r\n"
        b"Subject: Quarterly report\r\n"
        b"Message-ID: <CAF1234@mail.example.com>\r\n"
        b"MIME-Version: 1.0\r\n"
        b"Content-Type: text/plain; charset=\"UTF-8\"\r\n"
        b"\r\n"
        b"Hi Bob,\r\n"
        b"\r\n"
        b"The report is attached.\r\n"
    )
