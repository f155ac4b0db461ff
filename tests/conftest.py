"""Pytest fixtures: fake loader and transport standing in for the WSDL host and the SOAP endpoint."""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping

import pytest

from soaplink.exceptions import DefinitionsSourceError
from soaplink.wsdl.protocol import Definitions, Port, Service

NAMESPACE = "http://example.com/stock/"
SCHEMA_NAMESPACE = "http://example.com/stock/schema"
ADDRESS = "http://example.com/stock/endpoint"

SAMPLE_WSDL = b"""<?xml version="1.0" encoding="UTF-8"?>
<definitions name="StockQuote"
    targetNamespace="http://example.com/stock/"
    xmlns="http://schemas.xmlsoap.org/wsdl/"
    xmlns:soap="http://schemas.xmlsoap.org/wsdl/soap/"
    xmlns:soap12="http://schemas.xmlsoap.org/wsdl/soap12/"
    xmlns:xsd="http://www.w3.org/2001/XMLSchema"
    xmlns:tns="http://example.com/stock/">
  <types>
    <xsd:schema targetNamespace="http://example.com/stock/schema"/>
  </types>
  <binding name="StockQuoteSoapBinding" type="tns:StockQuotePortType">
    <soap:binding style="document" transport="http://schemas.xmlsoap.org/soap/http"/>
    <operation name="GetLastTradePrice">
      <soap:operation soapAction="http://example.com/GetLastTradePrice"/>
    </operation>
    <operation name="GetVolume">
      <soap:operation soapAction=""/>
    </operation>
  </binding>
  <binding name="StockQuoteSoap12Binding" type="tns:StockQuotePortType">
    <operation name="GetHistory">
      <soap12:operation soapAction="http://example.com/GetHistory"/>
    </operation>
  </binding>
  <service name="StockQuoteService">
    <port name="StockQuotePort" binding="tns:StockQuoteSoapBinding">
      <soap:address location="http://example.com/stock/endpoint"/>
    </port>
    <port name="StockQuotePort12" binding="tns:StockQuoteSoap12Binding">
      <soap12:address location="http://example.com/stock/endpoint12"/>
    </port>
  </service>
</definitions>
"""

OK_RESPONSE = b"""<?xml version="1.0" encoding="UTF-8"?>
<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">
  <soap:Header><Session>abc</Session></soap:Header>
  <soap:Body><GetPriceResponse><Price>34.5</Price></GetPriceResponse></soap:Body>
</soap:Envelope>
"""


def make_definitions(**overrides: Any) -> Definitions:
    values: dict[str, Any] = {
        "target_namespace": NAMESPACE,
        "schema_namespace": SCHEMA_NAMESPACE,
        "services": (Service("StockQuoteService", (Port("StockQuotePort", addresses=(ADDRESS,)),)),),
        "actions": {"GetLastTradePrice": "http://example.com/GetLastTradePrice"},
    }
    values.update(overrides)
    return Definitions(**values)


class FakeLoader:
    """DefinitionsLoader double: counts loads, optionally slow, optionally failing."""

    def __init__(
        self,
        definitions: Definitions | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        on_load: Callable[[], None] | None = None,
    ) -> None:
        self.definitions = definitions if definitions is not None else make_definitions()
        self.error = error
        self.delay = delay
        self.on_load = on_load
        self.sources: list[str] = []

    @property
    def loads(self) -> int:
        return len(self.sources)

    async def load(self, source: str) -> Definitions:
        self.sources.append(source)
        if self.on_load is not None:
            self.on_load()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.definitions


class RecordingTransport:
    """SoapTransport double: records every POST and answers with a canned body."""

    def __init__(self, response: bytes = OK_RESPONSE, *, error: Exception | None = None, delay: float = 0.0) -> None:
        self.response = response
        self.error = error
        self.delay = delay
        self.requests: list[dict[str, Any]] = []

    async def post(
        self,
        url: str,
        payload: bytes,
        headers: Mapping[str, str],
        auth: tuple[str, str] | None = None,
    ) -> bytes:
        self.requests.append({"url": url, "payload": payload, "headers": dict(headers), "auth": auth})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def loader() -> FakeLoader:
    return FakeLoader()


@pytest.fixture
def failing_loader() -> FakeLoader:
    return FakeLoader(error=DefinitionsSourceError("cannot fetch WSDL: connection refused"))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def wsdl_file(tmp_path) -> str:
    path = tmp_path / "stock.wsdl"
    path.write_bytes(SAMPLE_WSDL)
    return str(path)
