"""
HTTP plumbing shared by the OAuth and meetings clients.
"""

from typing import Any

import httpx

from recruiting.conferencing.config import ZoomConfig


def build_http_client(config: ZoomConfig) -> httpx.Client:
    """Create the outbound client used for every Zoom call."""
    return httpx.Client(
        timeout=httpx.Timeout(config.request_timeout_seconds),
        headers={"Accept": "application/json"},
    )


def provider_message(response: httpx.Response) -> str:
    """Best human-readable error text from a provider response."""
    try:
        body: Any = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "reason", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return response.text or response.reason_phrase
