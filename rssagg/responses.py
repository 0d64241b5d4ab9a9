"""Helpers that build JSON HTTP responses."""

from __future__ import annotations

import json
import logging
from typing import Any

from flask import Response

log = logging.getLogger(__name__)


def respond_with_json(status: int, payload: Any) -> Response:
    """Serialise ``payload`` as JSON; answer 500 with no body if that fails."""
    try:
        data = json.dumps(payload)
    except (TypeError, ValueError):
        log.error("Failed to marshal JSON response: %r", payload)
        return Response(status=500)
    return Response(data, status=status, content_type="application/json")


def respond_with_error(status: int, message: str) -> Response:
    """Answer with ``{"error": message}``, logging server-side failures."""
    if status > 499:
        log.error("Server error: %s", message)
    return respond_with_json(status, {"error": message})