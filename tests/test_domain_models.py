"""
Tests for domain models (data structures).
"""

import dataclasses

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.models import (
    ForwardingConfig,
    ForwardRequest,
    ForwardResult,
    ForwardState,
    ParsedEvent,
    Settings,
)


class TestForwardingConfig:
    """Test ForwardingConfig dataclass."""

    def test_defaults(self):
        config = ForwardingConfig()

        assert config.verified_from_address is None
        assert config.subject_prefix is None
        assert config.forward_to_address is None

    def test_is_immutable(self):
        config = ForwardingConfig(forward_to_address="rcpt@relay.com")

        with pytest.raises(dataclasses.FrozenInstanceError):
            config.forward_to_address = "other@relay.com"


class TestSettings:
    """Test Settings dataclass."""

    def test_defaults(self):
        settings = Settings(forwarding=ForwardingConfig(), email_bucket="bucket")

        assert settings.email_key_prefix == ""
        assert settings.stage == "dev"

    def test_frozen(self):
        settings = Settings(forwarding=ForwardingConfig(), email_bucket="bucket")

        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.stage = "prod"


class TestParsedEvent:
    """Test ParsedEvent result type."""

    def test_ok(self):
        request = ForwardRequest(message_id="msg-1", original_recipients=("a@example.com",))

        parsed = ParsedEvent.ok(request)

        assert parsed.success is True
        assert parsed.request is request
        assert parsed.error_message is None

    def test_malformed(self):
        parsed = ParsedEvent.malformed("expected exactly 1 record, got 2")

        assert parsed.success is False
        assert parsed.request is None
        assert "2" in parsed.error_message


class TestForwardResult:
    """Test ForwardResult dataclass."""

    def test_sent_result(self):
        result = ForwardResult(
            message_id="msg-1",
            envelope_sender="verified@relay.com",
            recipients=["rcpt@relay.com"],
            send_outcome={'MessageId': 'ses-123'},
            state=ForwardState.SENT
        )

        assert result.sent is True
        assert result.ses_message_id == 'ses-123'

    def test_defaults(self):
        result = ForwardResult(message_id="msg-1", envelope_sender=None, recipients=[])

        assert result.sent is False
        assert result.ses_message_id is None
        assert result.state is ForwardState.START

    def test_repr(self):
        result = ForwardResult(
            message_id="msg-1",
            envelope_sender=None,
            recipients=["rcpt@relay.com"],
            state=ForwardState.SENT
        )

        assert repr(result) == "ForwardResult(message_id=msg-1, state=sent, recipients=['rcpt@relay.com'])"


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
