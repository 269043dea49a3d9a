"""
AWS Lambda handler for forwarding SES-received email.

Thin orchestration layer that delegates to EmailForwarder.
Policy: one message per invocation, no retries here. Errors are logged to
CloudWatch and raised so the Lambda host can retry or dead-letter.
"""

import logging
import os
from typing import Any, Dict, Optional

from domain.config import load_settings
from domain.forwarder import EmailForwarder

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Read configuration and initialize forwarder once at module level (reused across invocations)
settings = load_settings()
email_forwarder = EmailForwarder(settings)


def _requested_stage(event: Dict[str, Any]) -> Optional[str]:
    """Stage label passed by the caller via queryStringParameters.stage, if any."""
    if not isinstance(event, dict):
        return None
    params = event.get('queryStringParameters') or {}
    if not isinstance(params, dict):
        return None
    return params.get('stage')


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Forward the email referenced by an SES receipt-rule event.

    Args:
        event: SES event (exactly one record)
        context: Lambda context

    Returns:
        Dict: The SES SendRawEmail response

    Raises:
        MalformedEvent: If the event is not a single SES record
        FetchFailed: If the message could not be read from S3
        SendFailed: If SES rejected the message
    """
    stage = _requested_stage(event) or settings.stage

    logger.info("=" * 70)
    logger.info(f"SES Email Forwarder - Started (stage={stage})")
    logger.info("=" * 70)

    result = email_forwarder.forward(event)

    logger.info(
        f"✓ Forwarded message {result.message_id} to {', '.join(result.recipients)} "
        f"(ses_message_id={result.ses_message_id})"
    )
    return result.send_outcome
