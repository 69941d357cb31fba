"""
Tests for the contact form Lambda handler.
"""

import base64
import json
import pytest
from unittest.mock import MagicMock, patch
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

import contact_form_handler
from domain.submission_processor import SubmissionProcessor


@pytest.fixture(autouse=True)
def configured_processor(settings, monkeypatch):
    """Swap the module-level processor for one built from test settings."""
    monkeypatch.setattr(contact_form_handler, 'submission_processor', SubmissionProcessor(settings))


@pytest.fixture
def mock_post():
    with patch('integrations.turnstile_verification.requests.post') as post:
        response = MagicMock()
        response.status_code = 200
        response.json.return_value = {'success': True, 'hostname': 'cf-form-page.pages.dev'}
        post.return_value = response
        yield post


@pytest.fixture
def mock_ses():
    with patch('services.ses.boto3.client') as boto_client:
        client = MagicMock()
        client.send_email.return_value = {'MessageId': 'ses-message-id-123'}
        boto_client.return_value = client
        yield client


class TestParseEvent:
    """Test proxy event normalisation."""

    def test_rest_api_event(self, make_event):
        event = make_event(method='post', body='{"a": 1}', headers={'CF-Connecting-IP': '203.0.113.7'})

        request = contact_form_handler.parse_event(event)

        assert request.method == 'POST'
        assert request.body == '{"a": 1}'
        assert request.header('cf-connecting-ip') == '203.0.113.7'
        assert request.origin == 'https://cf-form-page.pages.dev'
        assert request.source_ip == '198.51.100.20'

    def test_http_api_event(self):
        event = {
            'version': '2.0',
            'headers': {'origin': 'https://cf-form-page.pages.dev'},
            'requestContext': {'http': {'method': 'OPTIONS', 'sourceIp': '203.0.113.9'}},
        }

        request = contact_form_handler.parse_event(event)

        assert request.method == 'OPTIONS'
        assert request.body is None
        assert request.source_ip == '203.0.113.9'

    def test_missing_headers(self):
        request = contact_form_handler.parse_event({'httpMethod': 'GET', 'headers': None})

        assert request.headers == {}
        assert request.origin == ''


class TestLambdaHandler:
    """Test the Lambda entry point end to end."""

    def test_success(self, make_event, valid_payload, lambda_context, mock_post, mock_ses):
        response = contact_form_handler.lambda_handler(make_event(body=valid_payload), lambda_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body == {'success': 'Email sent successfully!', 'rev': 'test-rev'}
        assert response['headers']['Access-Control-Allow-Origin'] == 'https://cf-form-page.pages.dev'
        assert response['headers']['X-Handler-Rev'] == 'test-rev'
        mock_ses.send_email.assert_called_once()

    def test_preflight_has_empty_body(self, make_event, lambda_context, mock_post):
        response = contact_form_handler.lambda_handler(
            make_event(method='OPTIONS', body={'name': 'ignored'}), lambda_context
        )

        assert response['statusCode'] == 204
        assert response['body'] == ''
        assert response['headers']['Vary'] == 'Origin'
        mock_post.assert_not_called()

    def test_preview_origin_allowed(self, make_event, lambda_context):
        origin = 'https://3f9a1c2b.cf-form-page.pages.dev'

        response = contact_form_handler.lambda_handler(make_event(method='OPTIONS', origin=origin), lambda_context)

        assert response['statusCode'] == 204
        assert response['headers']['Access-Control-Allow-Origin'] == origin

    def test_forbidden_origin(self, make_event, valid_payload, lambda_context, mock_post, mock_ses):
        response = contact_form_handler.lambda_handler(
            make_event(body=valid_payload, origin='https://evil.example.com'), lambda_context
        )

        assert response['statusCode'] == 403
        assert json.loads(response['body'])['error'] == 'Forbidden origin'
        assert 'Access-Control-Allow-Origin' not in response['headers']
        mock_ses.send_email.assert_not_called()

    def test_non_browser_caller_without_origin(self, make_event, valid_payload, lambda_context, mock_post, mock_ses):
        response = contact_form_handler.lambda_handler(make_event(body=valid_payload, origin=None), lambda_context)

        assert response['statusCode'] == 200
        assert 'Access-Control-Allow-Origin' not in response['headers']

    def test_method_not_allowed(self, make_event, lambda_context):
        response = contact_form_handler.lambda_handler(make_event(method='GET'), lambda_context)

        assert response['statusCode'] == 405
        assert json.loads(response['body'])['error'] == 'Method Not Allowed'

    def test_missing_fields(self, make_event, lambda_context, mock_post):
        response = contact_form_handler.lambda_handler(
            make_event(body={'name': 'Jane', 'email': '', 'message': ' '}), lambda_context
        )

        assert response['statusCode'] == 400
        body = json.loads(response['body'])
        assert body['error'] == 'All fields are required'
        assert body['missing'] == ['email', 'message', 'turnstileToken']
        mock_post.assert_not_called()

    def test_base64_encoded_body(self, make_event, valid_payload, lambda_context, mock_post, mock_ses):
        event = make_event()
        event['body'] = base64.b64encode(json.dumps(valid_payload).encode('utf-8')).decode('ascii')
        event['isBase64Encoded'] = True

        response = contact_form_handler.lambda_handler(event, lambda_context)

        assert response['statusCode'] == 200

    def test_user_agent_and_ip_reach_email(self, make_event, valid_payload, lambda_context, mock_post, mock_ses):
        event = make_event(body=valid_payload, headers={'X-Forwarded-For': '203.0.113.50, 10.0.0.1'})

        contact_form_handler.lambda_handler(event, lambda_context)

        text_body = mock_ses.send_email.call_args[1]['Message']['Body']['Text']['Data']
        assert 'IP: 198.51.100.20' in text_body
        assert '203.0.113.50' not in text_body
        assert 'User-Agent: pytest-agent/1.0' in text_body

    def test_spoofed_connecting_ip_not_trusted(self, make_event, valid_payload, lambda_context, mock_post, mock_ses):
        event = make_event(body=valid_payload, headers={
            'CF-Connecting-IP': '1.2.3.4',
            'X-Forwarded-For': '9.9.9.9, 198.51.100.20',
        })

        contact_form_handler.lambda_handler(event, lambda_context)

        assert mock_post.call_args[1]['data']['remoteip'] == '198.51.100.20'
        text_body = mock_ses.send_email.call_args[1]['Message']['Body']['Text']['Data']
        assert '1.2.3.4' not in text_body

    def test_send_failure(self, make_event, valid_payload, lambda_context, mock_post, mock_ses):
        mock_ses.send_email.side_effect = RuntimeError("endpoint unreachable")

        response = contact_form_handler.lambda_handler(make_event(body=valid_payload), lambda_context)

        assert response['statusCode'] == 500
        assert json.loads(response['body']) == {'error': 'Failed to send email', 'rev': 'test-rev'}
        assert 'endpoint unreachable' not in response['body']
