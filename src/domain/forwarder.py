"""
Email forwarding pipeline - core business logic.

This module forwards one SES-received message per invocation:
1. Parse the SES event into a ForwardRequest
2. Resolve outbound recipients and envelope sender
3. Fetch the raw message from S3
4. Rewrite its headers
5. Send it with SES SendRawEmail

Any failure aborts the pipeline. Errors are logged with context and raised to
the Lambda host; nothing is retried here.
"""

import logging
from typing import Any, Dict, Optional

from .errors import FetchFailed, ForwardingError, MalformedEvent, SendFailed
from .models import (
    ForwardRequest,
    ForwardResult,
    ForwardState,
    ParsedEvent,
    ResolvedRecipients,
    Settings,
)
from .recipients import resolve_recipients
from services import email as email_service
from services import s3 as s3_service
from services import ses as ses_service

logger = logging.getLogger(__name__)

SES_EVENT_SOURCE = 'aws:ses'
SES_EVENT_VERSION = '1.0'


def _child(obj: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = obj.get(key)
    return value if isinstance(value, dict) else {}


class EmailForwarder:
    """
    Forwards SES-received email to the configured address.

    Holds only immutable settings; each call to forward() owns its request
    and result, so one instance serves every invocation.
    """

    def __init__(self, settings: Settings):
        """
        Initialize forwarder.

        Args:
            settings: Process-wide settings
        """
        self.settings = settings

    def forward(self, event: Dict[str, Any]) -> ForwardResult:
        """
        Forward the message referenced by an SES event.

        Args:
            event: SES receipt-rule Lambda event

        Returns:
            ForwardResult: With state SENT and the SES response

        Raises:
            MalformedEvent: If the event is not a single SES receipt record
            ConfigurationError: If no forward-to address is configured
            FetchFailed: If the message cannot be read from S3
            SendFailed: If SES does not accept the message
        """
        state = ForwardState.START
        message_id = None

        try:
            parsed = self._parse_event(event)
            if not parsed.success:
                raise MalformedEvent(f"Malformed SES event: {parsed.error_message}")
            request = parsed.request
            message_id = request.message_id
            state = self._advance(state, ForwardState.PARSED, message_id)

            resolved = resolve_recipients(request.original_recipients, self.settings.forwarding)
            state = self._advance(state, ForwardState.RECIPIENTS_RESOLVED, message_id)

            request.raw_message = self._fetch_message(request)
            state = self._advance(state, ForwardState.MESSAGE_FETCHED, message_id)

            transformed = email_service.transform_message(
                request.raw_message,
                self.settings.forwarding,
                resolved.original_recipient
            )
            state = self._advance(state, ForwardState.MESSAGE_TRANSFORMED, message_id)

            outcome = self._send_message(request, resolved, transformed)
            state = self._advance(state, ForwardState.SENT, message_id)

        except ForwardingError as e:
            e.message_id = e.message_id or message_id
            e.state = state
            self._advance(state, ForwardState.FAILED, e.message_id)
            logger.error(
                f"Forwarding failed: operation={e.operation}, message_id={e.message_id}, "
                f"state={state.value}, stage={self.settings.stage}, error={e}",
                exc_info=True
            )
            raise

        except Exception as e:
            self._advance(state, ForwardState.FAILED, message_id)
            logger.error(
                f"Forwarding failed: operation=unexpected, message_id={message_id}, "
                f"state={state.value}, stage={self.settings.stage}, error={e!r}",
                exc_info=True
            )
            raise

        return ForwardResult(
            message_id=message_id,
            envelope_sender=resolved.envelope_sender,
            recipients=resolved.recipients,
            original_recipients=resolved.original_recipients,
            transformed_message=transformed,
            send_outcome=outcome,
            state=state
        )

    def _advance(
        self,
        current: ForwardState,
        target: ForwardState,
        message_id: Optional[str]
    ) -> ForwardState:
        logger.info(f"Message {message_id}: {current.value} -> {target.value}")
        return target

    def _parse_event(self, event: Any) -> ParsedEvent:
        """
        Validate an SES event and extract the message id and recipients.

        The event must hold exactly one record, from SES, with event version
        1.0, a message id and at least one recipient. Nothing is raised; a bad
        event comes back as ParsedEvent.malformed().

        Args:
            event: Lambda event payload

        Returns:
            ParsedEvent: The request, or the reason the event was rejected
        """
        if not isinstance(event, dict):
            return ParsedEvent.malformed(f"event must be an object, got {type(event).__name__}")

        records = event.get('Records')
        if not isinstance(records, list) or len(records) != 1:
            count = len(records) if isinstance(records, list) else 0
            return ParsedEvent.malformed(f"expected exactly 1 record, got {count}")

        record = records[0]
        if not isinstance(record, dict):
            return ParsedEvent.malformed("record must be an object")
        if record.get('eventSource') != SES_EVENT_SOURCE:
            return ParsedEvent.malformed(
                f"eventSource must be {SES_EVENT_SOURCE!r}, got {record.get('eventSource')!r}"
            )
        if record.get('eventVersion') != SES_EVENT_VERSION:
            return ParsedEvent.malformed(
                f"eventVersion must be {SES_EVENT_VERSION!r}, got {record.get('eventVersion')!r}"
            )

        ses = _child(record, 'ses')
        mail = _child(ses, 'mail')
        receipt = _child(ses, 'receipt')

        message_id = mail.get('messageId')
        if not message_id or not isinstance(message_id, str):
            return ParsedEvent.malformed("ses.mail.messageId is missing")

        recipients = receipt.get('recipients')
        if not isinstance(recipients, list) or not recipients:
            return ParsedEvent.malformed("ses.receipt.recipients is missing or empty")
        if not all(isinstance(r, str) and r for r in recipients):
            return ParsedEvent.malformed("ses.receipt.recipients must hold only non-empty strings")

        return ParsedEvent.ok(ForwardRequest(
            message_id=message_id,
            original_recipients=tuple(recipients)
        ))

    def _fetch_message(self, request: ForwardRequest) -> str:
        """
        Read the raw message from S3.

        Raises:
            FetchFailed: Wrapping whatever the S3 call raised
        """
        key = s3_service.build_object_key(self.settings.email_key_prefix, request.message_id)

        try:
            raw_bytes = s3_service.fetch_email_from_s3(self.settings.email_bucket, key)
        except Exception as e:
            raise FetchFailed(
                f"Could not fetch s3://{self.settings.email_bucket}/{key}: {e}",
                message_id=request.message_id,
                original=e
            ) from e

        logger.info(f"Fetched {len(raw_bytes):,} bytes from S3")
        return email_service.decode_raw_message(raw_bytes)

    def _send_message(
        self,
        request: ForwardRequest,
        resolved: ResolvedRecipients,
        transformed: str
    ) -> Dict[str, Any]:
        """
        Send the transformed message through SES.

        Raises:
            SendFailed: Wrapping whatever the SES call raised
        """
        logger.info(
            f"sendMessage: Original recipients: {', '.join(resolved.original_recipients)}. "
            f"Transformed recipients: {', '.join(resolved.recipients)}"
        )

        try:
            return ses_service.send_raw_email(
                resolved.envelope_sender,
                resolved.recipients,
                email_service.encode_raw_message(transformed)
            )
        except Exception as e:
            raise SendFailed(
                f"SES did not accept message {request.message_id}: {e}",
                message_id=request.message_id,
                original=e
            ) from e
