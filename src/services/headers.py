"""
Header tokenizer and forwarding rewrites.

The header block of a raw message is tokenized into HeaderField records, one
per header with its folded continuation lines attached. Each rewrite is a
function over the field list, so a pass can never match half of a folded
header or leave a continuation line orphaned.

Line endings are kept exactly as received; rewritten fields reuse the line
ending of the field they replace.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

from domain.models import ForwardingConfig

logger = logging.getLogger(__name__)

_CONTINUATION = (' ', '\t')
_LINE_END = re.compile(r'\r?\n$')
_FOLD = re.compile(r'\r?\n(?=[ \t])')
_ANGLE_ADDR = re.compile(r'<(.*)>')

# (name, case_sensitive)
STRIPPED_HEADERS = (
    ('Return-Path', True),
    ('Sender', True),
    ('Message-ID', False),
)


def split_lines(text: str) -> List[str]:
    """
    Split text into lines, keeping each line's ending.

    Only LF ends a line; a CR before it stays part of the line. A final line
    without a line ending is returned as is.

    Example:
        >>> split_lines("a\\r\\nb\\nc")
        ['a\\r\\n', 'b\\n', 'c']
    """
    parts = text.split('\n')
    lines = [part + '\n' for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


@dataclass
class HeaderField:
    """
    One header and its continuation lines.

    Attributes:
        name: Field name as written, or None for a line that is not a header
        lines: Raw lines, line endings included
    """
    name: Optional[str]
    lines: List[str]

    @classmethod
    def build(cls, name: str, value: str, eol: str) -> 'HeaderField':
        """Create a field from a (possibly folded) value."""
        return cls(name=name, lines=split_lines(f"{name}: {value}{eol}"))

    @property
    def text(self) -> str:
        return ''.join(self.lines)

    @property
    def eol(self) -> str:
        """Line ending of the last line ('' if unterminated)."""
        match = _LINE_END.search(self.lines[-1])
        return match.group(0) if match else ''

    @property
    def value(self) -> str:
        """Text after the colon, folding preserved, final line ending removed."""
        text = self.text
        if self.eol:
            text = text[:-len(self.eol)]
        if self.name is None:
            return text
        return text[len(self.name) + 1:].lstrip(' \t')

    @property
    def unfolded_value(self) -> str:
        return _FOLD.sub('', self.value)

    def is_named(self, name: str, case_sensitive: bool = True) -> bool:
        if self.name is None:
            return False
        if case_sensitive:
            return self.name == name
        return self.name.lower() == name.lower()


def tokenize_headers(header: str) -> List[HeaderField]:
    """
    Tokenize a header block into fields.

    A line starting with a space or tab continues the previous field. A line
    with a colon starts a new field named by the text before the colon. Any
    other line is kept verbatim as a nameless field.

    Args:
        header: Header block (without the blank separator line)

    Returns:
        List[HeaderField]: Fields in their original order
    """
    fields: List[HeaderField] = []
    for line in split_lines(header):
        if line.startswith(_CONTINUATION) and fields:
            fields[-1].lines.append(line)
            continue

        name, colon, _ = line.partition(':')
        if colon and name and name == name.strip():
            fields.append(HeaderField(name=name, lines=[line]))
        else:
            fields.append(HeaderField(name=None, lines=[line]))
    return fields


def render_headers(fields: Iterable[HeaderField]) -> str:
    return ''.join(field.text for field in fields)


def _detect_eol(fields: List[HeaderField]) -> str:
    for field in fields:
        if field.eol:
            return field.eol
    return '\r\n'


def _terminated(fields: List[HeaderField], eol: str) -> List[HeaderField]:
    """Return fields whose last line is guaranteed to end with a line ending."""
    if not fields or fields[-1].eol:
        return list(fields)
    last = fields[-1]
    closed = HeaderField(name=last.name, lines=last.lines[:-1] + [last.lines[-1] + eol])
    return list(fields[:-1]) + [closed]


def add_reply_to(fields: List[HeaderField]) -> List[HeaderField]:
    """
    Append a Reply-To copied from the first From header, unless one exists.

    The Reply-To check ignores case; the From lookup does not.
    """
    if any(field.is_named('Reply-To', case_sensitive=False) for field in fields):
        return fields

    sender = next((field for field in fields if field.is_named('From')), None)
    if sender is None or not sender.value.strip():
        logger.info("Reply-To address not added because From address was not properly extracted")
        return fields

    eol = _detect_eol(fields)
    result = _terminated(fields, eol)
    result.append(HeaderField.build('Reply-To', sender.value, sender.eol or eol))
    logger.info(f"Added Reply-To address of: {sender.unfolded_value}")
    return result


def _rewrite_from_value(
    value: str,
    verified_from_address: Optional[str],
    original_recipient: Optional[str]
) -> Optional[str]:
    if verified_from_address:
        display = _ANGLE_ADDR.sub('', value, count=1).strip()
        if display:
            return f"{display} <{verified_from_address}>"
        return f"<{verified_from_address}>"

    if not original_recipient:
        return None
    marked = value.replace('<', 'at ', 1).replace('>', '', 1)
    return f"{marked} <{original_recipient}>"


def rewrite_from(
    fields: List[HeaderField],
    verified_from_address: Optional[str],
    original_recipient: Optional[str]
) -> List[HeaderField]:
    """
    Point every From header at an address SES will accept.

    With a verified address, the display name is kept and the address is
    replaced. Without one, the original address is turned into display text
    ("Alice at alice@example.com") and the original recipient becomes the
    address.
    """
    result = []
    for field in fields:
        if not field.is_named('From'):
            result.append(field)
            continue

        value = _rewrite_from_value(field.unfolded_value, verified_from_address, original_recipient)
        if value is None:
            logger.warning(
                f"From header left unchanged: no verified address and no original recipient "
                f"(from={field.unfolded_value})"
            )
            result.append(field)
            continue
        result.append(HeaderField.build('From', value, field.eol))
    return result


def prefix_subject(fields: List[HeaderField], prefix: Optional[str]) -> List[HeaderField]:
    """Prepend prefix to every Subject header. Applying twice doubles it."""
    if not prefix:
        return fields

    result = []
    for field in fields:
        if not field.is_named('Subject'):
            result.append(field)
            continue
        first, rest = field.lines[0], field.lines[1:]
        remainder = first[len(field.name) + 1:].lstrip(' \t')
        result.append(HeaderField(name=field.name, lines=[f"Subject: {prefix}{remainder}"] + rest))
    return result


def replace_to(fields: List[HeaderField], forward_to_address: Optional[str]) -> List[HeaderField]:
    """Replace every To header, continuation lines included."""
    if not forward_to_address:
        return fields
    return [
        HeaderField.build('To', forward_to_address, field.eol) if field.is_named('To') else field
        for field in fields
    ]


def strip_headers(fields: List[HeaderField]) -> List[HeaderField]:
    """Drop Return-Path, Sender and Message-ID headers."""
    return [
        field for field in fields
        if not any(field.is_named(name, case_sensitive) for name, case_sensitive in STRIPPED_HEADERS)
    ]


def remove_dkim_signatures(fields: List[HeaderField]) -> List[HeaderField]:
    """
    Drop every DKIM-Signature header.

    The signatures no longer verify once From/Subject/To are rewritten, and
    SES rejects messages with duplicate DKIM-Signature headers.
    """
    return [field for field in fields if not field.is_named('DKIM-Signature')]


def transform_headers(
    header: str,
    config: ForwardingConfig,
    original_recipient: Optional[str]
) -> str:
    """
    Rewrite a header block for re-sending through SES.

    Passes run in a fixed order, each on the previous pass's output:
    Reply-To injection, From rewrite, Subject prefix, To replacement,
    header stripping, DKIM-Signature removal. A pass with nothing to match
    is a no-op; no pass raises.

    Args:
        header: Header block of the original message
        config: Forwarding options
        original_recipient: Address the message was originally sent to

    Returns:
        str: The rewritten header block

    Example:
        >>> config = ForwardingConfig(
        ...     verified_from_address="verified@relay.com",
        ...     subject_prefix="[FWD] ",
        ...     forward_to_address="rcpt@relay.com",
        ... )
        >>> print(transform_headers(
        ...     "From: Alice <alice@example.com>\\nTo: bob@example.com\\nSubject: Hi\\n",
        ...     config, "bob@example.com"), end="")
        From: Alice <verified@relay.com>
        To: rcpt@relay.com
        Subject: [FWD] Hi
        Reply-To: Alice <alice@example.com>
    """
    fields = tokenize_headers(header)
    fields = add_reply_to(fields)
    fields = rewrite_from(fields, config.verified_from_address, original_recipient)
    fields = prefix_subject(fields, config.subject_prefix)
    fields = replace_to(fields, config.forward_to_address)
    fields = strip_headers(fields)
    fields = remove_dkim_signatures(fields)
    return render_headers(fields)
