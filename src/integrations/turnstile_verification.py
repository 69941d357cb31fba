"""
Cloudflare Turnstile Verification Module

Redeems a Turnstile token against the siteverify endpoint. Exactly one HTTP
call is made per verification; there are no retries.

Usage:
    from integrations import turnstile_verification

    result = turnstile_verification.verify_token(
        token="0.abc...",
        secret_key="0x4AAAA...",
        remote_ip="203.0.113.7"
    )
    if result.success:
        ...
"""

import logging
import time
from typing import Optional

import requests

from contact_form_config import ConfigurationError
from domain.models import VerificationResult

logger = logging.getLogger(__name__)

SITEVERIFY_URL = 'https://challenges.cloudflare.com/turnstile/v0/siteverify'
DEFAULT_TIMEOUT_SECONDS = 10.0


class VerificationServiceError(Exception):
    """Raised when the siteverify endpoint returns an unusable response."""
    pass


def verify_token(
    token: str,
    secret_key: Optional[str],
    remote_ip: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> VerificationResult:
    """
    Verify a Turnstile token.

    Args:
        token: Token produced by the Turnstile widget
        secret_key: Site secret key
        remote_ip: Caller IP, forwarded as remoteip when known
        timeout: HTTP timeout in seconds

    Returns:
        VerificationResult: Parsed service verdict

    Raises:
        ConfigurationError: If the secret key is not configured
        VerificationServiceError: If the response is not a JSON object
        requests.RequestException: For network failures
    """
    if not secret_key:
        raise ConfigurationError("TURNSTILE_SECRET_KEY environment variable is required but not set")

    form = {
        'secret': secret_key,
        'response': token,
    }
    if remote_ip:
        form['remoteip'] = remote_ip

    start_time = time.time()
    response = requests.post(SITEVERIFY_URL, data=form, timeout=timeout)

    try:
        data = response.json()
    except ValueError as e:
        logger.error(
            f"Failed to parse siteverify response: status={response.status_code}, "
            f"body={response.text[:200]}"
        )
        raise VerificationServiceError(
            f"siteverify returned non-JSON response (status {response.status_code})"
        ) from e

    if not isinstance(data, dict):
        raise VerificationServiceError(
            f"siteverify returned unexpected payload type: {type(data).__name__}"
        )

    result = VerificationResult.from_response(data)
    logger.info(
        f"Turnstile verification: success={result.success}, "
        f"hostname={result.hostname}, error_codes={result.error_codes}, "
        f"elapsed={time.time() - start_time:.2f}s"
    )
    return result
