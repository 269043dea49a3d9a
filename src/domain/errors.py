"""
Exception types for the forwarding pipeline.

Every pipeline failure is a ForwardingError subclass so the Lambda host sees
one of three outcomes: a malformed trigger, a failed S3 fetch, or a failed
SES send. The underlying boto3 error (if any) is kept on ``original``.
"""

from typing import Optional


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class ForwardingError(Exception):
    """
    Base class for errors raised while forwarding a single message.

    Attributes:
        message_id: SES message id being forwarded (None if not yet parsed)
        operation: Pipeline step that failed ("parse", "fetch", "send")
        state: Last ForwardState reached before the failure
        original: Underlying exception, if this error wraps one
    """

    operation = 'forward'

    def __init__(
        self,
        message: str,
        message_id: Optional[str] = None,
        original: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message_id = message_id
        self.original = original
        self.state = None


class MalformedEvent(ForwardingError):
    """Raised when the inbound trigger is not a single SES receipt record."""
    operation = 'parse'


class FetchFailed(ForwardingError):
    """Raised when the raw message cannot be read from S3."""
    operation = 'fetch'


class SendFailed(ForwardingError):
    """Raised when SES rejects the message or cannot be reached."""
    operation = 'send'
