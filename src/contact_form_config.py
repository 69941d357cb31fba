"""
Environment-backed configuration for the contact form handler.

Settings are read once per invocation from process environment variables and
passed explicitly to the pipeline, so tests can build their own instances
without touching os.environ.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from domain.models import CorsPolicy

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGINS = 'https://cf-form-page.pages.dev'
DEFAULT_ALLOWED_ORIGIN_SUFFIX = '.cf-form-page.pages.dev'
DEFAULT_MAIL_SOURCE = 'no-reply@example.com'
DEFAULT_MAIL_RECIPIENTS = 'contact@example.com'
DEFAULT_MAIL_REPLY_TO = 'replyto@example.com'
DEFAULT_REVISION = 'dev'
DEFAULT_TURNSTILE_TIMEOUT_SECONDS = 10.0


class ConfigurationError(Exception):
    """Raised when a required environment variable is missing or invalid."""
    pass


@dataclass(frozen=True)
class Settings:
    """
    Immutable process configuration.

    Attributes:
        cors_policy: Allowed origins and hostname suffix
        mail_source: SES Source address
        mail_recipients: SES ToAddresses
        mail_reply_to: SES ReplyToAddresses
        revision: Build/revision marker echoed in headers and bodies
        aws_region: SES region (required when sending)
        aws_access_key_id: SES access key (required when sending)
        aws_secret_access_key: SES secret key (required when sending)
        aws_session_token: Optional session token for temporary credentials
        turnstile_secret_key: Turnstile secret (required when verifying)
        turnstile_timeout: HTTP timeout in seconds for siteverify
        trusted_ip_header: Lower-cased header set by a trusted proxy in front of
            the function (e.g. cf-connecting-ip); None trusts only the request context
    """
    cors_policy: CorsPolicy
    mail_source: str = DEFAULT_MAIL_SOURCE
    mail_recipients: Tuple[str, ...] = (DEFAULT_MAIL_RECIPIENTS,)
    mail_reply_to: Tuple[str, ...] = (DEFAULT_MAIL_REPLY_TO,)
    revision: str = DEFAULT_REVISION
    aws_region: Optional[str] = None
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_session_token: Optional[str] = None
    turnstile_secret_key: Optional[str] = None
    turnstile_timeout: float = DEFAULT_TURNSTILE_TIMEOUT_SECONDS
    trusted_ip_header: Optional[str] = None


def _split_list(raw: str) -> Tuple[str, ...]:
    """Split a comma-separated variable, dropping blank entries."""
    return tuple(item.strip() for item in raw.split(',') if item.strip())


def _read_timeout(raw: Optional[str]) -> float:
    if not raw:
        return DEFAULT_TURNSTILE_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(
            f"TURNSTILE_TIMEOUT_SECONDS must be a number, got: '{raw}'"
        )
    if timeout <= 0:
        raise ConfigurationError(
            f"TURNSTILE_TIMEOUT_SECONDS must be positive, got: {timeout}"
        )
    return timeout


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Credentials are optional here: their absence is reported by the service
    that needs them, so a misconfigured deployment still answers preflight
    and validation requests.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Settings: Immutable configuration

    Raises:
        ConfigurationError: If a variable is present but malformed
    """
    env = os.environ if environ is None else environ

    cors_policy = CorsPolicy(
        allowed_origins=_split_list(env.get('ALLOWED_ORIGINS', DEFAULT_ALLOWED_ORIGINS)),
        allowed_suffix=env.get('ALLOWED_ORIGIN_SUFFIX', DEFAULT_ALLOWED_ORIGIN_SUFFIX).strip(),
    )

    recipients = _split_list(env.get('MAIL_RECIPIENTS', DEFAULT_MAIL_RECIPIENTS))
    if not recipients:
        raise ConfigurationError("MAIL_RECIPIENTS must name at least one address")

    return Settings(
        cors_policy=cors_policy,
        mail_source=env.get('MAIL_SOURCE', DEFAULT_MAIL_SOURCE),
        mail_recipients=recipients,
        mail_reply_to=_split_list(env.get('MAIL_REPLY_TO', DEFAULT_MAIL_REPLY_TO)),
        revision=env.get('HANDLER_REVISION') or DEFAULT_REVISION,
        aws_region=env.get('AWS_REGION') or None,
        aws_access_key_id=env.get('AWS_ACCESS_KEY_ID') or None,
        aws_secret_access_key=env.get('AWS_SECRET_ACCESS_KEY') or None,
        aws_session_token=env.get('AWS_SESSION_TOKEN') or None,
        turnstile_secret_key=env.get('TURNSTILE_SECRET_KEY') or None,
        turnstile_timeout=_read_timeout(env.get('TURNSTILE_TIMEOUT_SECONDS')),
        trusted_ip_header=(env.get('TRUSTED_IP_HEADER') or '').strip().lower() or None,
    )
