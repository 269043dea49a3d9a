"""
Tests for the raw message splitter and message transform.
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.models import ForwardingConfig
from services import email
from services.email import MessageParts


class TestSplitMessage:
    """Test splitting raw messages into header and body."""

    def test_split_crlf_message(self):
        raw = "From: a@example.com\r\nSubject: Hi\r\n\r\nHello\r\nWorld\r\n"

        parts = email.split_message(raw)

        assert parts.header == "From: a@example.com\r\nSubject: Hi\r\n"
        assert parts.separator == "\r\n"
        assert parts.body == "Hello\r\nWorld\r\n"

    def test_split_lf_message(self):
        raw = "Subject: Hi\n\nBody\n"

        assert email.split_message(raw) == MessageParts("Subject: Hi\n", "\n", "Body\n")

    def test_split_at_first_blank_line_only(self):
        raw = "Subject: Hi\n\nparagraph one\n\nparagraph two\n"

        parts = email.split_message(raw)

        assert parts.header == "Subject: Hi\n"
        assert parts.body == "paragraph one\n\nparagraph two\n"

    def test_no_blank_line_is_all_header(self):
        raw = "From: a@example.com\nSubject: Hi\n"

        assert email.split_message(raw) == MessageParts(raw, "", "")

    def test_no_blank_line_unterminated(self):
        raw = "Subject: Hi"

        assert email.split_message(raw) == MessageParts("Subject: Hi", "", "")

    def test_leading_blank_line(self):
        raw = "\r\nBody only\r\n"

        assert email.split_message(raw) == MessageParts("", "\r\n", "Body only\r\n")

    def test_empty_message(self):
        assert email.split_message("") == MessageParts("", "", "")

    def test_whitespace_line_is_not_separator(self):
        raw = "Subject: Hi\n \nX-After: 1\n\nBody"

        parts = email.split_message(raw)

        assert parts.header == "Subject: Hi\n \nX-After: 1\n"
        assert parts.body == "Body"

    def test_body_without_trailing_newline(self):
        raw = "Subject: Hi\r\n\r\nno newline at end"

        assert email.split_message(raw).body == "no newline at end"

    @pytest.mark.parametrize("raw", [
        "From: a@example.com\r\nSubject: Hi\r\n\r\nHello\r\n",
        "Subject: Hi\n\nBody\n\n\n",
        "garbage without structure",
        "\n\n\n",
        "Folded: one\r\n two\r\n\r\n\r\nbody\rwith\rbare\rcr",
        "",
    ])
    def test_split_join_reconstructs_input(self, raw):
        parts = email.split_message(raw)

        assert parts.header + parts.separator + parts.body == raw
        assert parts.join() == raw


class TestRawEncoding:
    """Test byte-preserving decode/encode."""

    def test_utf8_round_trip(self):
        data = "Subject: Grüße\r\n\r\nこんにちは\r\n".encode('utf-8')

        assert email.encode_raw_message(email.decode_raw_message(data)) == data

    def test_invalid_utf8_bytes_survive(self):
        data = b"Subject: Hi\r\n\r\n\xff\xfe latin-1 \xe9\r\n"

        assert email.encode_raw_message(email.decode_raw_message(data)) == data


class TestTransformMessage:
    """Test header rewriting on complete messages."""

    def test_body_is_untouched(self):
        config = ForwardingConfig(
            verified_from_address="verified@relay.com",
            subject_prefix="[FWD] ",
            forward_to_address="rcpt@relay.com"
        )
        body = "From: this line is in the body\r\nTo: so is this\r\n"
        raw = "From: Alice <alice@example.com>\r\nTo: bob@example.com\r\n\r\n" + body

        result = email.transform_message(raw, config, "bob@example.com")

        assert result == (
            "From: Alice <verified@relay.com>\r\n"
            "To: rcpt@relay.com\r\n"
            "Reply-To: Alice <alice@example.com>\r\n"
            "\r\n" + body
        )

    def test_headers_only_message(self):
        config = ForwardingConfig(forward_to_address="rcpt@relay.com")
        raw = "To: bob@example.com\nSubject: Hi"

        result = email.transform_message(raw, config, "bob@example.com")

        assert result == "To: rcpt@relay.com\nSubject: Hi"


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
