"""
Origin policy predicates and CORS header construction.

All functions are pure: the policy is passed in explicitly.
"""

from typing import Dict, Optional
from urllib.parse import urlsplit

from .models import CorsPolicy

ALLOW_METHODS = 'POST, OPTIONS'
ALLOW_HEADERS = 'Content-Type'
REVISION_HEADER = 'X-Handler-Rev'


def _matches_suffix(hostname: str, suffix: str) -> bool:
    return bool(suffix) and hostname.endswith(suffix)


def is_allowed_hostname(hostname: Optional[str], policy: CorsPolicy) -> bool:
    """
    Check a bare hostname (no scheme, no port) against the policy.

    A hostname is allowed if it is the host of an allow-listed origin, or if
    it ends with the allowed suffix.

    Example:
        >>> policy = CorsPolicy(('https://cf-form-page.pages.dev',), '.cf-form-page.pages.dev')
        >>> is_allowed_hostname('abc123.cf-form-page.pages.dev', policy)
        True
        >>> is_allowed_hostname('evil.example.com', policy)
        False
    """
    if not hostname:
        return False
    hostname = hostname.strip().lower()
    allowed_hosts = {
        (urlsplit(origin).hostname or '').lower() for origin in policy.allowed_origins
    }
    if hostname in allowed_hosts:
        return True
    return _matches_suffix(hostname, policy.allowed_suffix.lower())


def is_allowed_origin(origin: Optional[str], policy: CorsPolicy) -> bool:
    """
    Check a request Origin header against the policy.

    An absent or empty origin is allowed (non-browser caller). Otherwise the
    origin must match an allow-listed origin exactly, or its hostname must
    end with the allowed suffix.
    """
    if not origin:
        return True
    if origin in policy.allowed_origins:
        return True
    try:
        hostname = urlsplit(origin).hostname
    except ValueError:
        return False
    if not hostname:
        return False
    return _matches_suffix(hostname.lower(), policy.allowed_suffix.lower())


def build_cors_headers(origin: Optional[str], allowed: bool, revision: str) -> Dict[str, str]:
    """
    Build the headers attached to every response.

    Access-Control-Allow-Origin echoes the origin only when one was present
    and allowed.
    """
    headers = {
        'Access-Control-Allow-Methods': ALLOW_METHODS,
        'Access-Control-Allow-Headers': ALLOW_HEADERS,
        'Vary': 'Origin',
        REVISION_HEADER: revision,
    }
    if origin and allowed:
        headers['Access-Control-Allow-Origin'] = origin
    return headers
