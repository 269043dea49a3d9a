"""
S3 operations for the forwarder.

This module reads the raw messages SES stores in S3 when a receipt rule has an
S3 action.
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,  # 10 seconds to establish connection
    read_timeout=60      # 60 seconds max for reading response
)

# Initialize S3 client at module level (thread-safe, reused across invocations)
s3_client = boto3.client('s3', config=s3_config)
logger.info("S3 client initialized with timeouts: connect=10s, read=60s, max_attempts=1")


def build_object_key(prefix: str, message_id: str) -> str:
    """
    Join the configured key prefix and an SES message id.

    Trailing slashes on the prefix are dropped so "emails" and "emails/" both
    give "emails/<message_id>". A leading slash is part of the key and is kept.

    Example:
        >>> build_object_key("incoming/", "0ab1c2d3")
        'incoming/0ab1c2d3'
        >>> build_object_key("", "0ab1c2d3")
        '0ab1c2d3'
    """
    prefix = (prefix or '').rstrip('/')
    if not prefix:
        return message_id
    return f"{prefix}/{message_id}"


def fetch_email_from_s3(bucket: str, key: str) -> bytes:
    """
    Fetch raw email content from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key (path to the email file)

    Returns:
        bytes: The raw email content as bytes

    Raises:
        ClientError: If the object or bucket does not exist, or access fails
        Exception: Any other error from boto3, unchanged

    Example:
        >>> email_bytes = fetch_email_from_s3(
        ...     bucket="my-ses-bucket",
        ...     key="incoming/0ab1c2d3"
        ... )
        >>> print(len(email_bytes))
        12345
    """
    logger.info(f"Fetching email at s3://{bucket}/{key}")

    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        return response['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code == 'NoSuchKey':
            logger.error(f"S3 object not found: s3://{bucket}/{key}")
        elif error_code == 'NoSuchBucket':
            logger.error(f"S3 bucket not found: {bucket}")
        else:
            logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
        raise
    except Exception as e:
        logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
        raise
