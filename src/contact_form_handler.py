"""
AWS Lambda handler for contact form submissions.

Thin orchestration layer: converts the API Gateway / function URL proxy event
into a FormRequest, delegates to SubmissionProcessor, and renders the result
as a proxy response.
"""

import json
import logging
import os
from typing import Dict, Any

from contact_form_config import load_settings
from domain.models import FormRequest, HandlerResponse
from domain.submission_processor import SubmissionProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(name)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
settings = load_settings()
submission_processor = SubmissionProcessor(settings)


def parse_event(event: Dict[str, Any]) -> FormRequest:
    """
    Normalise a Lambda proxy event.

    Handles both payload formats:
    - REST API (v1): httpMethod, requestContext.identity.sourceIp
    - HTTP API / function URL (v2): requestContext.http.method / sourceIp

    Args:
        event: Lambda proxy event

    Returns:
        FormRequest: Method, lower-cased headers, raw body and source IP
    """
    request_context = event.get('requestContext') or {}
    http_context = request_context.get('http') or {}
    identity = request_context.get('identity') or {}

    method = event.get('httpMethod') or http_context.get('method') or ''
    source_ip = http_context.get('sourceIp') or identity.get('sourceIp')

    headers = {
        str(name).lower(): str(value)
        for name, value in (event.get('headers') or {}).items()
        if value is not None
    }

    return FormRequest(
        method=method.upper(),
        headers=headers,
        body=event.get('body'),
        source_ip=source_ip,
        is_base64_encoded=bool(event.get('isBase64Encoded')),
    )


def to_proxy_response(response: HandlerResponse) -> Dict[str, Any]:
    """Render a HandlerResponse as a Lambda proxy response."""
    return {
        'statusCode': response.status_code,
        'headers': dict(response.headers),
        'body': json.dumps(response.body) if response.body is not None else '',
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Handle a contact form request.

    Expected event: API Gateway or Lambda function URL proxy event whose POST
    body is
    {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "message": "Hello",
        "turnstileToken": "0.abc..."
    }

    Args:
        event: Lambda proxy event
        context: Lambda context

    Returns:
        Dict with statusCode, headers and body
    """
    request = parse_event(event)
    logger.info(
        f"Received {request.method or 'UNKNOWN'} request: "
        f"request_id={getattr(context, 'aws_request_id', 'local')}, "
        f"origin={request.origin or '-'}"
    )

    response = submission_processor.handle(request)
    logger.info(f"Completed request: {response!r}")

    return to_proxy_response(response)
