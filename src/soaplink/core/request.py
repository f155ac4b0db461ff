"""Call request: method name and ordered params; built directly or from a caller object."""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Protocol, runtime_checkable

from soaplink.exceptions import RequestError

# Ordered name -> value. Values: scalars, nested mappings, or sequences (repeated element).
Params = dict[str, Any]
HeaderParams = dict[str, Any]


@dataclass(frozen=True)
class Request:
    """Immutable request: method + params (+ header params overriding the client's)."""

    method: str
    params: Mapping[str, Any] = field(default_factory=dict)
    header_params: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params or {})))
        if self.header_params is not None:
            object.__setattr__(self, "header_params", MappingProxyType(dict(self.header_params)))


@runtime_checkable
class RequestStruct(Protocol):
    """Caller type that knows how to turn itself into a Request."""

    def soap_build_request(self) -> Request:
        ...


def new_request(method: str, params: Mapping[str, Any] | None = None) -> Request:
    return Request(method, params or {})


def new_request_by_struct(s: RequestStruct | None) -> Request:
    """Build a Request from an object implementing RequestStruct."""
    if s is None:
        raise RequestError("request struct cannot be None")
    if not isinstance(s, RequestStruct):
        raise RequestError(f"{type(s).__name__} does not implement soap_build_request()")
    req = s.soap_build_request()
    if not isinstance(req, Request):
        raise RequestError(f"{type(s).__name__}.soap_build_request() must return a Request")
    return req
