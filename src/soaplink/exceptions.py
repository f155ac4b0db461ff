"""Error taxonomy of the SOAP client: description source, configuration, transport, decode."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from soaplink.core.responses import Response


class SoapError(Exception):
    """Base error: code + message, like any RPC failure."""

    code = "SOAP_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(f"[{self.code}] {message}")


class DefinitionsSourceError(SoapError):
    """Service description source is malformed, unreachable or unparseable."""

    code = "DEFINITIONS_SOURCE"


class ConfigurationError(SoapError):
    """Loaded description cannot serve calls."""

    code = "CONFIGURATION_ERROR"


class DefinitionsNotFoundError(ConfigurationError):
    code = "DEFINITIONS_NOT_FOUND"


class NoServicesError(ConfigurationError):
    code = "NO_SERVICES"


class NoEndpointError(ConfigurationError):
    code = "NO_ENDPOINT"


class RequestError(SoapError):
    code = "INVALID_REQUEST"


class EnvelopeError(SoapError):
    """Request envelope could not be serialized."""

    code = "ENVELOPE_ERROR"


class TransportError(SoapError):
    code = "TRANSPORT_ERROR"


class EnvelopeDecodeError(SoapError):
    """Response is not a readable envelope. `partial` holds what was decoded before the failure."""

    code = "DECODE_ERROR"

    def __init__(self, message: str, partial: Any = None) -> None:
        self.partial = partial
        super().__init__(message)


class ErrorWithPayload(SoapError):
    """
    Failure of a sent call, carrying the exact request payload.
    `response` is set when a response arrived but could only be partially decoded.
    """

    def __init__(
        self,
        error: BaseException,
        payload: bytes,
        response: Response | None = None,
    ) -> None:
        self.error = error
        self.payload = payload
        self.response = response
        code = error.code if isinstance(error, SoapError) else TransportError.code
        message = error.message if isinstance(error, SoapError) else str(error) or type(error).__name__
        super().__init__(message, code=code)


def get_payload_from_error(err: BaseException | None) -> bytes | None:
    """Payload of an ErrorWithPayload; None for any other error."""
    if isinstance(err, ErrorWithPayload):
        return err.payload
    return None
