"""
Email Tools

SES transport for candidate mail. Messages go out through SendRawEmail
so Reply-To, X-Mailer and List-Unsubscribe reach the recipient intact.
"""

from email.headerregistry import Address
from email.message import EmailMessage
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from email_validator import EmailNotValidError, validate_email
import structlog

from recruiting.shared.config import get_settings
from recruiting.shared.exceptions import InvalidEmailFormatError, SESError

log = structlog.get_logger()


def _get_client():
    return boto3.client("ses", **get_settings().ses_config)


def format_address(address: str, display_name: str | None = None) -> str:
    """Render `Display Name <user@domain>` (or the bare address)."""
    if not display_name:
        return address
    username, _, domain = address.partition("@")
    return str(Address(display_name=display_name, username=username, domain=domain))


def build_mime_message(
    to_address: str,
    subject: str,
    body_text: str,
    *,
    body_html: str | None = None,
    from_address: str,
    from_name: str | None = None,
    reply_to: str | None = None,
    headers: dict[str, str] | None = None,
) -> EmailMessage:
    """
    Assemble a candidate message.

    With an HTML body the result is multipart/alternative, text part
    first; otherwise a single text/plain part.
    """
    message = EmailMessage()
    message["From"] = format_address(from_address, from_name)
    message["To"] = to_address
    message["Subject"] = subject
    if reply_to:
        message["Reply-To"] = reply_to
    for header, value in (headers or {}).items():
        message[header] = value

    message.set_content(body_text)
    if body_html:
        message.add_alternative(body_html, subtype="html")
    return message


def send_ses_raw_email(
    to_address: str,
    subject: str,
    body_text: str,
    *,
    body_html: str | None = None,
    reply_to: str | None = None,
    from_address: str | None = None,
    from_name: str | None = None,
    headers: dict[str, str] | None = None,
    configuration_set: str | None = None,
) -> str:
    """
    Deliver one message to one recipient through SES.

    The envelope sender is always the configured (verified) identity
    unless `from_address` overrides it; operators appear as Reply-To.

    Returns:
        SES message id

    Raises:
        SESError: SES refused the message (unverified sender, suppressed
            recipient, throttling, ...) or could not be reached
    """
    settings = get_settings()
    source = from_address or settings.sender_address
    message = build_mime_message(
        to_address,
        subject,
        body_text,
        body_html=body_html,
        from_address=source,
        from_name=from_name or settings.sender_name,
        reply_to=reply_to,
        headers=headers,
    )

    request: dict[str, Any] = {
        "Source": source,
        "Destinations": [to_address],
        "RawMessage": {"Data": message.as_bytes()},
    }
    config_set = configuration_set or settings.ses_configuration_set
    if config_set:
        request["ConfigurationSetName"] = config_set

    try:
        response = _get_client().send_raw_email(**request)
    except ClientError as e:
        code = e.response["Error"]["Code"]
        detail = e.response["Error"]["Message"]
        log.error("candidate_email_rejected", to=to_address, code=code, detail=detail)
        raise SESError(
            operation="send",
            recipient=to_address,
            error_message=f"{code}: {detail}",
        ) from e
    except BotoCoreError as e:
        log.error("candidate_email_transport_failed", to=to_address, error=str(e))
        raise SESError(operation="send", recipient=to_address, error_message=str(e)) from e

    log.info(
        "candidate_email_sent",
        to=to_address,
        subject=subject[:50],
        message_id=response["MessageId"],
    )
    return response["MessageId"]


def validate_email_address(email: str) -> str:
    """
    Check syntax and return the normalized address (domain lowercased).

    Deliverability (MX lookup) is not checked.

    Raises:
        InvalidEmailFormatError
    """
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise InvalidEmailFormatError(email_address=email, expected_pattern="RFC 5321") from e
