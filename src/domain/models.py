"""
Data models for the email forwarding domain.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class ForwardingConfig:
    """
    Header rewrite options, supplied once per process.

    Attributes:
        verified_from_address: SES-verified address used in the From header
        subject_prefix: Text prepended to every Subject header
        forward_to_address: Single address every message is forwarded to
    """
    verified_from_address: Optional[str] = None
    subject_prefix: Optional[str] = None
    forward_to_address: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration read from the environment at startup.

    Attributes:
        forwarding: Header rewrite options
        email_bucket: S3 bucket SES stores inbound mail in
        email_key_prefix: Key prefix of the stored messages
        stage: Deployment stage (dev, prod, ...)
    """
    forwarding: ForwardingConfig
    email_bucket: str
    email_key_prefix: str = ''
    stage: str = 'dev'


class ForwardState(Enum):
    """Pipeline states of a single forward invocation."""
    START = 'start'
    PARSED = 'parsed'
    RECIPIENTS_RESOLVED = 'recipients_resolved'
    MESSAGE_FETCHED = 'message_fetched'
    MESSAGE_TRANSFORMED = 'message_transformed'
    SENT = 'sent'
    FAILED = 'failed'


@dataclass
class ForwardRequest:
    """
    A message to forward, created from the SES notification.

    Attributes:
        message_id: SES message id (also the S3 object name)
        original_recipients: Recipients SES accepted the message for
        raw_message: Raw RFC 5322 message, filled in by the fetch step
    """
    message_id: str
    original_recipients: Tuple[str, ...]
    raw_message: Optional[str] = None


@dataclass
class ParsedEvent:
    """
    Result of validating an inbound SES event.

    A malformed event is reported through ``success=False`` rather than an
    exception; the orchestrator decides how to fail.
    """
    success: bool
    request: Optional[ForwardRequest] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls, request: ForwardRequest) -> 'ParsedEvent':
        return cls(success=True, request=request)

    @classmethod
    def malformed(cls, error_message: str) -> 'ParsedEvent':
        return cls(success=False, error_message=error_message)


@dataclass(frozen=True)
class ResolvedRecipients:
    """
    Envelope fields derived from configuration and the original recipients.

    Attributes:
        recipients: Outbound destinations (always the single forward-to address)
        original_recipients: Recipients from the SES receipt, unchanged
        original_recipient: First original recipient, used by the From fallback
        envelope_sender: Address passed to SES as Source
    """
    recipients: List[str]
    original_recipients: Tuple[str, ...]
    original_recipient: Optional[str]
    envelope_sender: Optional[str]


@dataclass
class ForwardResult:
    """
    Outcome of one forward invocation.

    Attributes:
        message_id: SES message id
        envelope_sender: Source address submitted to SES
        recipients: Destinations submitted to SES
        original_recipients: Recipients from the SES receipt
        transformed_message: Message after header rewriting
        send_outcome: SendRawEmail response
        state: Final pipeline state
    """
    message_id: str
    envelope_sender: Optional[str]
    recipients: List[str]
    original_recipients: Tuple[str, ...] = ()
    transformed_message: str = ''
    send_outcome: Dict[str, Any] = field(default_factory=dict)
    state: ForwardState = ForwardState.START

    @property
    def sent(self) -> bool:
        return self.state is ForwardState.SENT

    @property
    def ses_message_id(self) -> Optional[str]:
        """Message id SES assigned to the forwarded copy."""
        return self.send_outcome.get('MessageId')

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        return (
            f"ForwardResult(message_id={self.message_id}, state={self.state.value}, "
            f"recipients={self.recipients})"
        )
