from soaplink.core.config import MIN_REFRESH_INTERVAL, ClientConfig, load_config_from_env
from soaplink.core.gate import CallGate
from soaplink.core.request import (
    HeaderParams,
    Params,
    Request,
    RequestStruct,
    new_request,
    new_request_by_struct,
)
from soaplink.core.responses import Response

__all__ = [
    "CallGate",
    "ClientConfig",
    "HeaderParams",
    "MIN_REFRESH_INTERVAL",
    "Params",
    "Request",
    "RequestStruct",
    "Response",
    "load_config_from_env",
    "new_request",
    "new_request_by_struct",
]
