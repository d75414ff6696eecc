"""Response helpers shared by the resource layer and the CLI."""

from __future__ import annotations

from typing import Any

import httpx

from secure_session.output import get_output


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first and falls back to the raw
    text. Returns ``None`` for responses with no content.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def format_api_response(response: httpx.Response) -> None:
    """Print the status line to stderr and the body to stdout."""
    output = get_output()
    output.info(f"HTTP {response.status_code} {response.reason_phrase or ''}")
    data = extract_response_data(response)
    if data is not None:
        output.format_response(data)
