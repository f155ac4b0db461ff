"""Call response: decoded Header/Body inner markup plus the payload that was sent."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Response:
    """Response with raw .header/.body markup (UTF-8) and the outgoing .payload."""

    header: bytes = b""
    body: bytes = b""
    payload: bytes = b""

    @property
    def body_text(self) -> str:
        return self.body.decode("utf-8")
