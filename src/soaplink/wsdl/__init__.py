from soaplink.wsdl.loader import WsdlLoader, parse_wsdl
from soaplink.wsdl.protocol import (
    Definitions,
    DefinitionsLoader,
    Port,
    Service,
    StaticDefinitionsLoader,
)

__all__ = [
    "Definitions",
    "DefinitionsLoader",
    "Port",
    "Service",
    "StaticDefinitionsLoader",
    "WsdlLoader",
    "parse_wsdl",
]
