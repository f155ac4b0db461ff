"""
WsdlLoader — default DefinitionsLoader: reads a WSDL 1.1 document over HTTP(S) or from disk
and keeps only namespaces, endpoints and soapActions. Not a schema compiler.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Union

import httpx
from lxml import etree

from soaplink.exceptions import DefinitionsSourceError
from soaplink.wsdl.protocol import Definitions, Port, Service

logger = logging.getLogger(__name__)

WSDL_NS = "http://schemas.xmlsoap.org/wsdl/"
WSDL_SOAP_NS = "http://schemas.xmlsoap.org/wsdl/soap/"
WSDL_SOAP12_NS = "http://schemas.xmlsoap.org/wsdl/soap12/"
XSD_NS = "http://www.w3.org/2001/XMLSchema"

_SOAP_BINDING_NS = (WSDL_SOAP_NS, WSDL_SOAP12_NS)

DEFAULT_TIMEOUT = 30.0

# A fixed pair, or a callable read on every fetch (credentials that may change).
Auth = Union[tuple[str, str], Callable[[], Union[tuple[str, str], None]], None]


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_comments=True)


def parse_wsdl(data: bytes) -> Definitions:
    """Parse WSDL bytes into Definitions. Raises DefinitionsSourceError on anything unreadable."""
    try:
        root = etree.fromstring(data, parser=_parser())
    except etree.XMLSyntaxError as e:
        raise DefinitionsSourceError(f"unparseable WSDL: {e}") from e
    if root.tag != f"{{{WSDL_NS}}}definitions":
        raise DefinitionsSourceError(f"not a WSDL 1.1 document: root element is {etree.QName(root).localname!r}")

    schema_namespace = ""
    for schema in root.iterfind(f"{{{WSDL_NS}}}types/{{{XSD_NS}}}schema"):
        schema_namespace = schema.get("targetNamespace", "")
        if schema_namespace:
            break

    services: list[Service] = []
    for svc in root.iterfind(f"{{{WSDL_NS}}}service"):
        ports: list[Port] = []
        for port in svc.iterfind(f"{{{WSDL_NS}}}port"):
            addresses = tuple(
                addr.get("location", "")
                for ns in _SOAP_BINDING_NS
                for addr in port.iterfind(f"{{{ns}}}address")
                if addr.get("location")
            )
            ports.append(Port(name=port.get("name", ""), binding=port.get("binding", ""), addresses=addresses))
        services.append(Service(name=svc.get("name", ""), ports=tuple(ports)))

    actions: dict[str, str] = {}
    for binding in root.iterfind(f"{{{WSDL_NS}}}binding"):
        for op in binding.iterfind(f"{{{WSDL_NS}}}operation"):
            name = op.get("name", "")
            if not name or name in actions:
                continue
            for ns in _SOAP_BINDING_NS:
                soap_op = op.find(f"{{{ns}}}operation")
                if soap_op is not None and soap_op.get("soapAction"):
                    actions[name] = soap_op.get("soapAction")
                    break

    return Definitions(
        target_namespace=root.get("targetNamespace", ""),
        schema_namespace=schema_namespace,
        services=tuple(services),
        actions=actions,
    )


class WsdlLoader:
    """Fetch WSDL from http(s)://, file:// or a plain path, then parse_wsdl()."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        auth: Auth = None,
        timeout: float | None = None,
    ) -> None:
        self._client = client
        self._auth = auth
        self._timeout = timeout if timeout is not None else DEFAULT_TIMEOUT

    async def load(self, source: str) -> Definitions:
        data = await self._read(source)
        definitions = parse_wsdl(data)
        logger.debug(
            "Parsed WSDL %s: namespace=%s services=%d actions=%d",
            source, definitions.target_namespace, len(definitions.services), len(definitions.actions),
        )
        return definitions

    async def _read(self, source: str) -> bytes:
        try:
            url = httpx.URL(source)
        except httpx.InvalidURL as e:
            raise DefinitionsSourceError(f"malformed WSDL locator {source!r}: {e}") from e
        if url.scheme in ("http", "https"):
            return await self._fetch(url)
        path = Path(url.path) if url.scheme == "file" else Path(source)
        try:
            return path.read_bytes()
        except OSError as e:
            raise DefinitionsSourceError(f"cannot read WSDL {source!r}: {e}") from e

    async def _fetch(self, url: httpx.URL) -> bytes:
        try:
            auth = self._auth() if callable(self._auth) else self._auth
            kwargs = {"auth": auth} if auth else {}
            if self._client is not None:
                r = await self._client.get(url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    r = await client.get(url, **kwargs)
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise DefinitionsSourceError(f"cannot fetch WSDL {url}: {e}") from e
        return r.content
