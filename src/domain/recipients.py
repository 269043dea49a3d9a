"""
Recipient resolution for forwarded messages.

Every message goes to the single configured forward-to address; the original
recipients are kept for logging and for the From fallback rewrite.
"""

from typing import Sequence

from .errors import ConfigurationError
from .models import ForwardingConfig, ResolvedRecipients


def resolve_recipients(
    original_recipients: Sequence[str],
    config: ForwardingConfig
) -> ResolvedRecipients:
    """
    Derive the outbound envelope from configuration.

    Args:
        original_recipients: Recipients from the SES receipt
        config: Forwarding options

    Returns:
        ResolvedRecipients: Outbound recipients, the first original recipient,
        and the envelope sender (verified address, else original recipient)

    Raises:
        ConfigurationError: If no forward-to address is configured
    """
    if not config.forward_to_address:
        raise ConfigurationError("FORWARD_TO_ADDRESS is not configured")

    originals = tuple(original_recipients)
    original_recipient = originals[0] if originals else None

    return ResolvedRecipients(
        recipients=[config.forward_to_address],
        original_recipients=originals,
        original_recipient=original_recipient,
        envelope_sender=config.verified_from_address or original_recipient
    )
