"""
soaplink — async client for SOAP 1.1 document/literal services.
One SoapClient per service: the WSDL is loaded on first call, optionally refreshed in the background,
and every call goes through client.call(method, params).
"""
from soaplink.core import ClientConfig, Request, RequestStruct, Response, load_config_from_env
from soaplink.exceptions import (
    ConfigurationError,
    DefinitionsNotFoundError,
    DefinitionsSourceError,
    EnvelopeDecodeError,
    EnvelopeError,
    ErrorWithPayload,
    NoEndpointError,
    NoServicesError,
    RequestError,
    SoapError,
    TransportError,
    get_payload_from_error,
)
from soaplink.rpc import HttpxSoapTransport, SoapClient, SoapTransport
from soaplink.wsdl import Definitions, DefinitionsLoader, WsdlLoader

__all__ = [
    "ClientConfig",
    "ConfigurationError",
    "Definitions",
    "DefinitionsLoader",
    "DefinitionsNotFoundError",
    "DefinitionsSourceError",
    "EnvelopeDecodeError",
    "EnvelopeError",
    "ErrorWithPayload",
    "HttpxSoapTransport",
    "NoEndpointError",
    "NoServicesError",
    "Request",
    "RequestError",
    "RequestStruct",
    "Response",
    "SoapClient",
    "SoapError",
    "SoapTransport",
    "TransportError",
    "WsdlLoader",
    "get_payload_from_error",
    "load_config_from_env",
]
