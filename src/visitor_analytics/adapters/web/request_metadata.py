"""Build ``RequestMetadata`` from Starlette requests and raw ASGI scopes.

Header names are lower-cased and repeated headers are joined with ``", "``,
the way proxies fold them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from visitor_analytics.domain.models import RequestMetadata

if TYPE_CHECKING:
    from starlette.requests import Request


def _decode_header_value(value: Any) -> str:
    """Decode a header value into a readable string."""
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return str(value)


def metadata_from_scope(scope: dict[str, Any] | None) -> RequestMetadata:
    """Extract headers and the socket peer address from an ASGI scope mapping.

    Malformed or missing scopes yield empty metadata instead of raising.
    """
    if not isinstance(scope, dict):
        return RequestMetadata()

    headers: dict[str, str] = {}
    for name, value in scope.get("headers") or []:
        decoded_name = _decode_header_value(name).lower()
        decoded_value = _decode_header_value(value)
        if decoded_name in headers:
            headers[decoded_name] = f"{headers[decoded_name]}, {decoded_value}"
        else:
            headers[decoded_name] = decoded_value

    peer_address: str | None = None
    client = scope.get("client")
    if isinstance(client, (list, tuple)) and client:
        candidate = client[0]
        if isinstance(candidate, (str, bytes)):
            peer_address = _decode_header_value(candidate)

    return RequestMetadata(headers=headers, peer_address=peer_address)


def metadata_from_request(request: Request) -> RequestMetadata:
    """Convenience wrapper taking a Starlette request."""
    return metadata_from_scope(dict(request.scope))
