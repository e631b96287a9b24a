# Shared Tools
"""
DynamoDB persistence and SES email transport.
"""

from recruiting.shared.tools.dynamodb import (
    create_operator,
    create_recruit_record,
    delete_recruit_record,
    list_operators_by_role,
    list_recruits_by_owner,
    load_operator,
    load_recruit,
    require_operator,
    save_recruit,
)
from recruiting.shared.tools.email import (
    build_mime_message,
    send_ses_raw_email,
    validate_email_address,
)

__all__ = [
    # DynamoDB tools
    "create_operator",
    "create_recruit_record",
    "delete_recruit_record",
    "list_operators_by_role",
    "list_recruits_by_owner",
    "load_operator",
    "load_recruit",
    "require_operator",
    "save_recruit",
    # Email tools
    "build_mime_message",
    "send_ses_raw_email",
    "validate_email_address",
]
