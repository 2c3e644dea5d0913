"""Request metadata domain model."""

from pydantic import BaseModel, ConfigDict, Field


class RequestMetadata(BaseModel):
    """Transport and header information of an incoming request.

    Header names are lower-cased. ``peer_address`` is the address of the
    socket peer as reported by the server, if any.
    """

    model_config = ConfigDict(frozen=True)

    headers: dict[str, str] = Field(default_factory=dict)
    peer_address: str | None = None

    def header(self, name: str) -> str | None:
        """Return a header value by case-insensitive name."""
        return self.headers.get(name.lower())

    @property
    def forwarded_chain(self) -> list[str]:
        """Return the non-empty ``X-Forwarded-For`` tokens, client first."""
        value = self.header("x-forwarded-for") or ""
        return [token.strip() for token in value.split(",") if token.strip()]
