"""
Contact form submission pipeline - core business logic.

This module handles one request end to end:
1. Check the Origin against the CORS policy
2. Answer preflight requests
3. Reject methods other than POST
4. Parse and validate the JSON body
5. Verify the Turnstile token
6. Check the hostname the token was solved on
7. Compose the notification email
8. Send it through SES
9. Return a HandlerResponse

Failures in steps 4-8 that are not policy or validation rejections are caught
and returned as a generic 500. No exceptions propagate out of handle().
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from contact_form_config import Settings
from services import email as email_service
from services import ses as ses_service
from integrations import turnstile_verification
from .cors import build_cors_headers, is_allowed_hostname, is_allowed_origin
from .models import FormRequest, HandlerResponse, SubmissionRequest

logger = logging.getLogger(__name__)

# Wire name -> SubmissionRequest attribute, in reporting order
REQUIRED_FIELDS = (
    ('name', 'name'),
    ('email', 'email'),
    ('message', 'message'),
    ('turnstileToken', 'verification_token'),
)

SUCCESS_MESSAGE = 'Email sent successfully!'
ERROR_FORBIDDEN_ORIGIN = 'Forbidden origin'
ERROR_METHOD_NOT_ALLOWED = 'Method Not Allowed'
ERROR_MISSING_FIELDS = 'All fields are required'
ERROR_INVALID_TOKEN = 'Invalid Turnstile token'
ERROR_INVALID_CONTEXT = 'Invalid Turnstile context'
ERROR_SEND_FAILED = 'Failed to send email'


def parse_submission(body: Optional[str]) -> Tuple[Optional[SubmissionRequest], List[str]]:
    """
    Parse and validate a JSON submission body.

    Non-string values and anything that is not a JSON object count as
    empty fields.

    Args:
        body: Raw request body

    Returns:
        Tuple of (SubmissionRequest or None, names of fields empty after trimming)

    Raises:
        json.JSONDecodeError: If the body is not valid JSON
    """
    payload = json.loads(body) if body and body.strip() else {}
    if not isinstance(payload, dict):
        payload = {}

    values: Dict[str, str] = {}
    missing: List[str] = []
    for wire_name, attribute in REQUIRED_FIELDS:
        raw = payload.get(wire_name)
        value = raw.strip() if isinstance(raw, str) else ''
        if not value:
            missing.append(wire_name)
        values[attribute] = value

    if missing:
        return None, missing
    return SubmissionRequest(**values), []


def extract_caller_ip(request: FormRequest, trusted_header: Optional[str] = None) -> Optional[str]:
    """
    Resolve the caller IP.

    The request context sourceIp is the peer API Gateway saw and cannot be
    set by the caller. A proxy header is only honoured when the deployment
    names it as trusted. For X-Forwarded-For the last hop is used, since that
    is the one appended by the trusted proxy; earlier hops are caller-supplied.

    Args:
        request: Normalised HTTP request
        trusted_header: Header written by a trusted proxy, or None

    Returns:
        Caller IP, or None if unknown
    """
    if trusted_header:
        value = request.header(trusted_header) or ''
        if trusted_header.lower() == 'x-forwarded-for':
            value = value.split(',')[-1]
        value = value.strip()
        if value:
            return value

    return request.source_ip or None


class SubmissionProcessor:
    """
    Handles the contact form request pipeline.

    Verifies the Turnstile token, then sends the email through SES. The
    second external call is only made once the first has succeeded.
    """

    def __init__(self, settings: Settings):
        """
        Initialize submission processor.

        Args:
            settings: Process configuration (policy, addresses, credentials)
        """
        self.settings = settings

    def handle(self, request: FormRequest) -> HandlerResponse:
        """
        Process a single HTTP request.

        Args:
            request: Normalised HTTP request

        Returns:
            HandlerResponse with status, headers and JSON body
        """
        origin = request.origin
        method = request.method.upper()
        allowed = is_allowed_origin(origin, self.settings.cors_policy)
        cors_headers = build_cors_headers(origin, allowed, self.settings.revision)

        if not allowed:
            logger.warning(f"Rejected request from forbidden origin: {origin}")
            return self._json(403, cors_headers, {'error': ERROR_FORBIDDEN_ORIGIN})

        if method == 'OPTIONS':
            return HandlerResponse(status_code=204, headers=cors_headers, body=None)

        if method != 'POST':
            logger.info(f"Rejected method: {method}")
            return self._json(405, cors_headers, {'error': ERROR_METHOD_NOT_ALLOWED})

        try:
            submission, missing = parse_submission(request.decoded_body())
            if missing:
                logger.info(f"Submission missing fields: {missing}")
                return self._json(400, cors_headers, {
                    'error': ERROR_MISSING_FIELDS,
                    'missing': missing,
                })

            caller_ip = extract_caller_ip(request, self.settings.trusted_ip_header)

            rejection = self._verify(submission, caller_ip)
            if rejection is not None:
                return self._json(400, cors_headers, rejection)

            message = email_service.compose_email(
                submission,
                source_address=self.settings.mail_source,
                recipient_addresses=self.settings.mail_recipients,
                reply_to_addresses=self.settings.mail_reply_to,
                caller_ip=caller_ip,
                user_agent=request.header('user-agent'),
            )

            ses_service.send_email(message, self.settings)

        except Exception as e:
            logger.error(f"Failed to process submission: {e}", exc_info=True)
            return self._json(500, cors_headers, {'error': ERROR_SEND_FAILED})

        logger.info("Submission forwarded successfully")
        return self._json(200, cors_headers, {'success': SUCCESS_MESSAGE})

    def _verify(self, submission: SubmissionRequest,
                caller_ip: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Verify the Turnstile token and the hostname it was solved on.

        Returns:
            Error body if the token must be rejected, None if it passes
        """
        result = turnstile_verification.verify_token(
            token=submission.verification_token,
            secret_key=self.settings.turnstile_secret_key,
            remote_ip=caller_ip,
            timeout=self.settings.turnstile_timeout,
        )

        if not result.success:
            logger.info(f"Turnstile token rejected: error_codes={result.error_codes}")
            return {'error': ERROR_INVALID_TOKEN}

        if result.hostname and not is_allowed_hostname(result.hostname, self.settings.cors_policy):
            logger.warning(f"Turnstile token solved on disallowed hostname: {result.hostname}")
            return {'error': ERROR_INVALID_CONTEXT, 'hostname': result.hostname}

        return None

    def _json(self, status_code: int, cors_headers: Dict[str, str],
              body: Dict[str, Any]) -> HandlerResponse:
        headers = dict(cors_headers)
        headers['Content-Type'] = 'application/json'
        body = dict(body)
        body['rev'] = self.settings.revision
        return HandlerResponse(status_code=status_code, headers=headers, body=body)
