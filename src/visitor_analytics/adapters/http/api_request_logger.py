"""Logging of outbound requests to third-party services when VISITOR_LOG_REQUESTS is enabled."""

import json
import logging
import os
from typing import Any

logger = logging.getLogger(__name__)

# Visitor addresses are forwarded to echo services; keep them out of the logs too.
_REDACTED_HEADERS = frozenset({"authorization", "cookie", "x-forwarded-for", "x-real-ip"})
_REDACTED_PARAMS = frozenset({"ip", "contact"})


def should_log_requests() -> bool:
    """Check if request logging is enabled via the VISITOR_LOG_REQUESTS environment variable."""
    return os.getenv("VISITOR_LOG_REQUESTS", "").lower() == "true"


def _redact(values: dict[str, Any], sensitive: frozenset[str]) -> dict[str, Any]:
    return {k: "***REDACTED***" if k.lower() in sensitive else v for k, v in values.items()}


def log_api_request(
    service: str,
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> None:
    """Log an outbound GET request if VISITOR_LOG_REQUESTS is enabled.

    Args:
        service: Short name of the called service (e.g. ``"getipintel"``).
        url: Request URL without query string.
        params: Query parameters; visitor IPs and contact data are redacted.
        headers: Request headers; forwarded client addresses are redacted.
    """
    if not should_log_requests():
        return

    log_parts = [f"GET {url}"]
    if params:
        log_parts.append(f"Params: {json.dumps(_redact(params, _REDACTED_PARAMS), sort_keys=True)}")
    if headers:
        log_parts.append(f"Headers: {json.dumps(_redact(headers, _REDACTED_HEADERS), indent=2)}")

    logger.info(f"API Request [{service}]:\n" + "\n".join(log_parts))
