"""
Amazon SES operations for the contact form handler.

The client is created per send from explicit credentials, so a missing or
rotated secret surfaces as a failed request rather than a failed cold start.
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from contact_form_config import ConfigurationError, Settings
from domain.models import EmailMessage

logger = logging.getLogger(__name__)

# One attempt, no retries; Lambda timeout bounds the rest
ses_config = Config(
    retries={
        'max_attempts': 0,
        'mode': 'standard'
    },
    connect_timeout=5,
    read_timeout=15
)


class EmailDeliveryError(Exception):
    """Raised when SES rejects or fails a send_email call."""
    pass


def create_ses_client(settings: Settings):
    """
    Create a boto3 SES client from configured region and credentials.

    Args:
        settings: Process configuration

    Returns:
        boto3.client: SES client with retries disabled

    Raises:
        ConfigurationError: If region or credentials are missing
    """
    missing = [
        name for name, value in (
            ('AWS_REGION', settings.aws_region),
            ('AWS_ACCESS_KEY_ID', settings.aws_access_key_id),
            ('AWS_SECRET_ACCESS_KEY', settings.aws_secret_access_key),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"SES is not configured; missing environment variables: {', '.join(missing)}"
        )

    return boto3.client(
        'ses',
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        aws_session_token=settings.aws_session_token,
        config=ses_config
    )


def send_email(message: EmailMessage, settings: Settings) -> str:
    """
    Send the composed message through SES exactly once.

    Args:
        message: Composed notification email
        settings: Process configuration (region and credentials)

    Returns:
        str: SES MessageId

    Raises:
        ConfigurationError: If SES credentials are missing
        EmailDeliveryError: If SES returns an error
    """
    client = create_ses_client(settings)

    try:
        response = client.send_email(**message.to_ses_kwargs())
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))
        raise EmailDeliveryError(f"SES rejected message: {error_code}: {error_message}") from e

    message_id = response.get('MessageId', '')
    logger.info(f"SES accepted message: message_id={message_id}")
    return message_id
