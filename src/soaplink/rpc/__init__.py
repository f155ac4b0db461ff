from soaplink.rpc.client import HttpxSoapTransport, SoapClient
from soaplink.rpc.envelope import SoapEnvelope, build_envelope, decode_envelope
from soaplink.rpc.protocol import SoapTransport

__all__ = [
    "SoapClient",
    "SoapTransport",
    "HttpxSoapTransport",
    "SoapEnvelope",
    "build_envelope",
    "decode_envelope",
]
