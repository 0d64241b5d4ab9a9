"""Extraction of API keys from request headers."""

from __future__ import annotations

from collections.abc import Mapping

_SCHEME = "ApiKey"


class AuthError(ValueError):
    """Raised when a request carries no usable API key."""


def _header_value(headers: Mapping[str, str], name: str) -> str:
    """Return the first value of a header, looking the name up case-insensitively."""
    value = headers.get(name)
    if value:
        return value
    wanted = name.lower()
    for key, candidate in headers.items():
        if key.lower() == wanted and candidate:
            return candidate
    return ""


def get_api_key(headers: Mapping[str, str]) -> str:
    """Return the key from an ``Authorization: ApiKey <key>`` header.

    Raises AuthError when the header is missing or not in that form.
    """
    value = _header_value(headers, "Authorization")
    if not value:
        raise AuthError("missing API key in Authorization header")
    parts = value.split(" ")
    if len(parts) != 2:
        raise AuthError("invalid API key format, expected")
    scheme, key = parts
    if scheme != _SCHEME:
        raise AuthError("invalid API key format, expected ApiKey")
    return key