"""
Email composition utilities for the contact form handler.

This module builds the notification email from a validated submission. Every
caller-supplied value is HTML-escaped before it is interpolated into the HTML
body.
"""

import html
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from domain.models import EmailMessage, SubmissionRequest

logger = logging.getLogger(__name__)

SUBJECT = 'New Contact Form Submission'
UNKNOWN = 'unknown'


def escape_html(value: str) -> str:
    """
    Escape the five HTML-special characters.

    Example:
        >>> escape_html('<b>"Tom" & \\'Jerry\\'</b>')
        '&lt;b&gt;&quot;Tom&quot; &amp; &#x27;Jerry&#x27;&lt;/b&gt;'
    """
    return html.escape(value, quote=True)


def _format_timestamp(submitted_at: datetime) -> str:
    if submitted_at.tzinfo is None:
        submitted_at = submitted_at.replace(tzinfo=timezone.utc)
    return submitted_at.astimezone(timezone.utc).isoformat(timespec='seconds')


def compose_text_body(submission: SubmissionRequest, submitted_at: str,
                      caller_ip: str, user_agent: str) -> str:
    return (
        f"New submission from: {submission.name}\n"
        f"Email: {submission.email} (Unverified)\n"
        f"\n"
        f"Message:\n"
        f"{submission.message}\n"
        f"\n"
        f"---\n"
        f"Submitted at: {submitted_at}\n"
        f"IP: {caller_ip}\n"
        f"User-Agent: {user_agent}\n"
    )


def compose_html_body(submission: SubmissionRequest, submitted_at: str,
                      caller_ip: str, user_agent: str) -> str:
    # Line breaks in the message are kept visible after escaping
    message_html = escape_html(submission.message).replace('\n', '<br>')
    return (
        "<h3>New Contact Submission</h3>\n"
        f"<p><b>Name:</b> {escape_html(submission.name)}</p>\n"
        f"<p><b>Email:</b> {escape_html(submission.email)} (Unverified)</p>\n"
        f"<p><b>Message:</b><br>{message_html}</p>\n"
        "<hr>\n"
        f"<p><small>Submitted at: {escape_html(submitted_at)}<br>"
        f"IP: {escape_html(caller_ip)}<br>"
        f"User-Agent: {escape_html(user_agent)}</small></p>\n"
    )


def compose_email(
    submission: SubmissionRequest,
    source_address: str,
    recipient_addresses: Sequence[str],
    reply_to_addresses: Sequence[str],
    caller_ip: Optional[str] = None,
    user_agent: Optional[str] = None,
    submitted_at: Optional[datetime] = None,
) -> EmailMessage:
    """
    Build the notification email for a validated submission.

    Addresses come from configuration and are never derived from the
    submission itself.

    Args:
        submission: Validated, trimmed submission
        source_address: SES Source address
        recipient_addresses: Destination addresses
        reply_to_addresses: Reply-To addresses
        caller_ip: Caller IP (rendered as "unknown" when absent)
        user_agent: Caller User-Agent (rendered as "unknown" when absent)
        submitted_at: Submission time (defaults to now, UTC)

    Returns:
        EmailMessage: Ready to hand to the SES adapter
    """
    timestamp = _format_timestamp(submitted_at or datetime.now(timezone.utc))
    ip = caller_ip or UNKNOWN
    agent = user_agent or UNKNOWN

    message = EmailMessage(
        source_address=source_address,
        recipient_addresses=list(recipient_addresses),
        reply_to_addresses=list(reply_to_addresses),
        subject=SUBJECT,
        text_body=compose_text_body(submission, timestamp, ip, agent),
        html_body=compose_html_body(submission, timestamp, ip, agent),
    )
    logger.info(
        f"Composed email: recipients={len(message.recipient_addresses)}, "
        f"text={len(message.text_body)}, html={len(message.html_body)}"
    )
    return message
