"""
SES send operations for the forwarder.

Messages are re-sent with SendRawEmail so the original MIME body and the
rewritten headers go out exactly as produced.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

SES_REGION = os.environ.get('SES_REGION') or 'us-east-1'

# Configure SES client with timeouts; retries are left to the Lambda host
ses_config = Config(
    retries={
        'max_attempts': 1,
        'mode': 'standard'
    },
    connect_timeout=10,
    read_timeout=30
)

# Module-level client (reused across invocations)
ses_client = boto3.client('ses', region_name=SES_REGION, config=ses_config)
logger.info(f"SES client initialized: region={SES_REGION}, connect=10s, read=30s, max_attempts=1")


def send_raw_email(
    source: Optional[str],
    destinations: List[str],
    raw_message: bytes
) -> Dict[str, Any]:
    """
    Send a raw MIME message through SES.

    Args:
        source: Envelope sender; must be a verified identity. When None, SES
            takes the sender from the message's From header.
        destinations: Envelope recipients
        raw_message: Complete message, headers and body

    Returns:
        Dict: The SendRawEmail response (contains 'MessageId')

    Raises:
        ValueError: If destinations or raw_message is empty
        ClientError: If SES rejects the message or the call fails
    """
    if not destinations:
        raise ValueError("At least one destination address is required")
    if not raw_message:
        raise ValueError("Raw message cannot be empty")

    params = {
        'Destinations': destinations,
        'RawMessage': {'Data': raw_message},
    }
    if source:
        params['Source'] = source

    logger.info(
        f"Sending raw email: source={source}, destinations={', '.join(destinations)}, "
        f"size={len(raw_message)} bytes"
    )

    try:
        response = ses_client.send_raw_email(**params)
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))
        logger.error(
            f"sendRawEmail() returned error: error_code={error_code}, "
            f"error_message={error_message}, source={source}"
        )
        raise

    logger.info(f"Email sent: ses_message_id={response.get('MessageId')}")
    return response
