"""SOAP transport protocol: POST an envelope, get bytes back; HTTP stack is up to the caller."""
from typing import Mapping, Protocol, runtime_checkable


@runtime_checkable
class SoapTransport(Protocol):
    """SOAP transport: send envelope, get raw response body. User implements (httpx, requests, ...)."""

    async def post(
        self,
        url: str,
        payload: bytes,
        headers: Mapping[str, str],
        auth: tuple[str, str] | None = None,
    ) -> bytes:
        ...
