# Conferencing
"""
Zoom integration: OAuth token lifecycle and meetings API.
"""

from recruiting.conferencing.config import ZoomConfig, get_zoom_config
from recruiting.conferencing.meetings import (
    PASSCODE_ALPHABET,
    ConferenceMeetingService,
    default_meeting_settings,
    generate_meeting_passcode,
)
from recruiting.conferencing.oauth import OAuthTokenManager
from recruiting.conferencing.timezones import (
    format_meeting_start,
    localize_meeting_start,
)
from recruiting.conferencing.token_store import TokenStore

__all__ = [
    # Config
    "ZoomConfig",
    "get_zoom_config",
    # Tokens
    "OAuthTokenManager",
    "TokenStore",
    # Meetings
    "ConferenceMeetingService",
    "PASSCODE_ALPHABET",
    "default_meeting_settings",
    "generate_meeting_passcode",
    # Time
    "format_meeting_start",
    "localize_meeting_start",
]
