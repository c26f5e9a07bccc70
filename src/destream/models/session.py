"""
Session dataclass for the authenticated credential bundle.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    """Bearer token plus the API gateway it is valid for.

    A Session is never mutated: a refresh produces a new instance that
    replaces the previous one wholesale.
    """

    access_token: str
    api_gateway_uri: str
    api_gateway_version: str

    @property
    def authorization_header(self) -> str:
        """Value for the HTTP ``Authorization`` header."""
        return f"Bearer {self.access_token}"

    def __repr__(self) -> str:
        # Never leak the bearer token into logs
        return (
            f"Session(api_gateway_uri={self.api_gateway_uri!r}, "
            f"api_gateway_version={self.api_gateway_version!r})"
        )
