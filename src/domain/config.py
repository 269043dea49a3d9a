"""
Configuration loading for the forwarder.

Settings are read from environment variables once, when the Lambda module is
imported, and treated as immutable afterwards.
"""

import logging
import os
from typing import Mapping, Optional

from .errors import ConfigurationError
from .models import ForwardingConfig, Settings

logger = logging.getLogger(__name__)

DEFAULT_STAGE = 'dev'


def _read_optional(environ: Mapping[str, str], name: str) -> Optional[str]:
    """Return the variable's value, treating empty strings as unset."""
    value = environ.get(name)
    return value if value else None


def _read_required(environ: Mapping[str, str], name: str) -> str:
    """
    Read a required environment variable.

    Raises:
        ConfigurationError: If the variable is missing or empty
    """
    value = environ.get(name)
    if not value:
        raise ConfigurationError(
            f"{name} environment variable is required but not set. "
            f"Please configure this in your SAM template or Lambda environment."
        )
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Settings: Validated, immutable settings

    Raises:
        ConfigurationError: If FORWARD_TO_ADDRESS or S3_BUCKET is missing

    Example:
        >>> settings = load_settings({
        ...     'FORWARD_TO_ADDRESS': 'me@example.com',
        ...     'S3_BUCKET': 'ses-inbound',
        ... })
        >>> settings.forwarding.forward_to_address
        'me@example.com'
    """
    if environ is None:
        environ = os.environ

    forwarding = ForwardingConfig(
        verified_from_address=_read_optional(environ, 'VERIFIED_FROM_ADDRESS'),
        subject_prefix=_read_optional(environ, 'SUBJECT_PREFIX'),
        forward_to_address=_read_required(environ, 'FORWARD_TO_ADDRESS'),
    )

    settings = Settings(
        forwarding=forwarding,
        email_bucket=_read_required(environ, 'S3_BUCKET'),
        email_key_prefix=environ.get('S3_EMAIL_PREFIX', ''),
        stage=_read_optional(environ, 'ENVIRONMENT') or DEFAULT_STAGE,
    )

    logger.info(
        f"Settings loaded: stage={settings.stage}, bucket={settings.email_bucket}, "
        f"prefix={settings.email_key_prefix!r}, forward_to={forwarding.forward_to_address}, "
        f"verified_from={forwarding.verified_from_address}"
    )
    return settings
