"""
Raw message utilities for the forwarder.

This module splits a raw RFC 5322 message into header block and body, and
applies the header rewrites to a complete message. The body is never parsed;
it is carried through byte for byte.
"""

import logging
from typing import NamedTuple, Optional

from domain.models import ForwardingConfig
from services.headers import split_lines, transform_headers

logger = logging.getLogger(__name__)

RAW_ENCODING = 'utf-8'
RAW_ERRORS = 'surrogateescape'


class MessageParts(NamedTuple):
    """
    A raw message divided at its first blank line.

    Attributes:
        header: Header lines, each with its line ending
        separator: The blank line ('\\r\\n', '\\n', or '' if there is none)
        body: Everything after the separator
    """
    header: str
    separator: str
    body: str

    def join(self) -> str:
        return join_message(self.header, self.separator, self.body)


def decode_raw_message(data: bytes) -> str:
    """
    Decode raw message bytes without losing any of them.

    Undecodable bytes become surrogates and are restored by encode_raw_message.
    """
    return data.decode(RAW_ENCODING, RAW_ERRORS)


def encode_raw_message(message: str) -> bytes:
    return message.encode(RAW_ENCODING, RAW_ERRORS)


def split_message(raw: str) -> MessageParts:
    """
    Split a raw message into header block, blank separator line, and body.

    The header block ends at the first empty line. Without an empty line the
    whole input is header. Line endings are preserved, so
    ``header + separator + body == raw`` for every input.

    Args:
        raw: Raw message text

    Returns:
        MessageParts: The three parts

    Example:
        >>> split_message("Subject: Hi\\r\\n\\r\\nHello\\r\\n")
        MessageParts(header='Subject: Hi\\r\\n', separator='\\r\\n', body='Hello\\r\\n')
    """
    offset = 0
    for line in split_lines(raw):
        if line in ('\n', '\r\n'):
            return MessageParts(
                header=raw[:offset],
                separator=line,
                body=raw[offset + len(line):]
            )
        offset += len(line)

    return MessageParts(header=raw, separator='', body='')


def join_message(header: str, separator: str, body: str) -> str:
    return header + separator + body


def transform_message(
    raw: str,
    config: ForwardingConfig,
    original_recipient: Optional[str]
) -> str:
    """
    Rewrite the headers of a raw message, leaving the body untouched.

    Args:
        raw: Raw message text
        config: Forwarding options
        original_recipient: Address the message was originally sent to

    Returns:
        str: The message ready for SendRawEmail
    """
    parts = split_message(raw)
    if not parts.separator:
        logger.warning("No blank line found in message, treating it as headers only")

    header = transform_headers(parts.header, config, original_recipient)
    logger.info(
        f"Transformed headers: {len(parts.header)} -> {len(header)} characters, "
        f"body={len(parts.body)} characters"
    )
    return join_message(header, parts.separator, parts.body)
