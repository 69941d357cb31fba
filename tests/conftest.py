"""
Pytest configuration and fixtures for all tests.
"""

import json
import os
import sys
import pytest
from unittest.mock import Mock

# Add src and hooks to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../hooks'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('HANDLER_REVISION', 'test-rev')
os.environ.setdefault('LOG_LEVEL', 'INFO')

from domain.models import CorsPolicy  # noqa: E402
from contact_form_config import Settings  # noqa: E402

ALLOWED_ORIGIN = 'https://cf-form-page.pages.dev'
PREVIEW_ORIGIN = 'https://3f9a1c2b.cf-form-page.pages.dev'


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up test environment variables for all tests."""
    # Environment variables are already set above
    yield


@pytest.fixture
def cors_policy():
    return CorsPolicy(
        allowed_origins=(ALLOWED_ORIGIN,),
        allowed_suffix='.cf-form-page.pages.dev',
    )


@pytest.fixture
def settings(cors_policy):
    """Fully configured settings (credentials present)."""
    return Settings(
        cors_policy=cors_policy,
        mail_source='no-reply@example.com',
        mail_recipients=('contact@example.com',),
        mail_reply_to=('replyto@example.com',),
        revision='test-rev',
        aws_region='eu-north-1',
        aws_access_key_id='AKIATESTKEY',
        aws_secret_access_key='test-secret-access-key',
        turnstile_secret_key='0x4AAAAAAAtestsecret',
    )


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.aws_request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:eu-north-1:123456789012:function:contact-form"
    context.function_name = "contact-form-test"
    return context


@pytest.fixture
def valid_payload():
    return {
        'name': 'Jane Doe',
        'email': 'jane@example.com',
        'message': 'Hello there',
        'turnstileToken': 'XXXX.DUMMY.TOKEN.XXXX',
    }


@pytest.fixture
def make_event():
    """Build a REST API (v1) proxy event."""
    def _make_event(method='POST', body=None, origin=ALLOWED_ORIGIN, headers=None,
                    source_ip='198.51.100.20'):
        event_headers = {
            'Content-Type': 'application/json',
            'User-Agent': 'pytest-agent/1.0',
        }
        if origin is not None:
            event_headers['Origin'] = origin
        event_headers.update(headers or {})
        return {
            'httpMethod': method,
            'headers': event_headers,
            'body': json.dumps(body) if isinstance(body, dict) else body,
            'isBase64Encoded': False,
            'requestContext': {'identity': {'sourceIp': source_ip}},
        }
    return _make_event
