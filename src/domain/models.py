"""
Data models for the contact form domain.

These type-safe data structures define clear contracts between the Lambda
entry point, the submission pipeline, and the external service adapters.
"""

import base64
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Tuple


@dataclass(frozen=True)
class CorsPolicy:
    """
    Static origin policy.

    Attributes:
        allowed_origins: Full origins (scheme://host[:port]) allowed verbatim
        allowed_suffix: Hostname suffix admitting any subdomain (e.g. preview deploys)
    """
    allowed_origins: Tuple[str, ...]
    allowed_suffix: str = ''


@dataclass
class FormRequest:
    """
    HTTP request normalised from a Lambda proxy event.

    Attributes:
        method: Upper-case HTTP method
        headers: Header map with lower-cased names
        body: Request body as received (None if absent)
        source_ip: Caller IP reported by the Lambda request context
        is_base64_encoded: Whether body is base64 (binary media / function URLs)
    """
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    source_ip: Optional[str] = None
    is_base64_encoded: bool = False

    def decoded_body(self) -> Optional[str]:
        """
        Return the body as text, decoding base64 if flagged.

        Raises:
            ValueError: If the body is not valid base64 or not UTF-8
        """
        if self.body is None or not self.is_base64_encoded:
            return self.body
        return base64.b64decode(self.body, validate=True).decode('utf-8')

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    @property
    def origin(self) -> str:
        return (self.header('origin') or '').strip()


@dataclass
class SubmissionRequest:
    """
    Validated contact form submission.

    All fields are trimmed and non-empty.
    """
    name: str
    email: str
    message: str
    verification_token: str


@dataclass
class VerificationResult:
    """
    Outcome reported by the Turnstile siteverify endpoint.

    Attributes:
        success: Whether the token was accepted
        hostname: Hostname the challenge was solved on (if reported)
        error_codes: Diagnostic codes returned by the service
    """
    success: bool
    hostname: Optional[str] = None
    error_codes: List[str] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'VerificationResult':
        """Build from the decoded siteverify JSON payload."""
        hostname = data.get('hostname')
        error_codes = data.get('error-codes') or []
        return cls(
            success=data.get('success') is True,
            hostname=hostname if isinstance(hostname, str) and hostname else None,
            error_codes=[str(code) for code in error_codes] if isinstance(error_codes, list) else [],
        )


@dataclass
class EmailMessage:
    """
    Outbound notification email.

    Attributes:
        source_address: Verified SES sender
        recipient_addresses: Destination ToAddresses, in order
        reply_to_addresses: ReplyToAddresses, in order
        subject: Subject line
        text_body: Plain text body
        html_body: HTML body (user-supplied values already escaped)
    """
    source_address: str
    recipient_addresses: List[str]
    reply_to_addresses: List[str]
    subject: str
    text_body: str
    html_body: str

    def to_ses_kwargs(self) -> Dict[str, Any]:
        """
        Convert to keyword arguments for the SES send_email API.

        Returns:
            Dict with Source, Destination, ReplyToAddresses and Message
        """
        return {
            'Source': self.source_address,
            'Destination': {
                'ToAddresses': list(self.recipient_addresses),
            },
            'ReplyToAddresses': list(self.reply_to_addresses),
            'Message': {
                'Subject': {'Charset': 'UTF-8', 'Data': self.subject},
                'Body': {
                    'Text': {'Charset': 'UTF-8', 'Data': self.text_body},
                    'Html': {'Charset': 'UTF-8', 'Data': self.html_body},
                },
            },
        }


@dataclass
class HandlerResponse:
    """
    Result of handling one request.

    Attributes:
        status_code: HTTP status
        headers: Response headers (CORS, revision marker, content type)
        body: JSON-serialisable body, or None for an empty response
    """
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Dict[str, Any]] = None

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        error = (self.body or {}).get('error')
        if error:
            return f"HandlerResponse(status={self.status_code}, error={error})"
        return f"HandlerResponse(status={self.status_code})"
