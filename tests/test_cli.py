"""Tests for the soaplink console command."""
from __future__ import annotations

import pytest
from typer.testing import CliRunner

from conftest import FakeLoader, RecordingTransport
from soaplink.cli import main as cli
from soaplink.core.config import ClientConfig
from soaplink.exceptions import TransportError
from soaplink.rpc.client import SoapClient

runner = CliRunner()


@pytest.fixture
def fake_client(monkeypatch: pytest.MonkeyPatch) -> dict:
    """Route CLI-built clients to fakes; expose what they saw."""
    seen: dict = {"transport": RecordingTransport(), "configs": []}

    def make(config: ClientConfig) -> SoapClient:
        seen["configs"].append(config)
        return SoapClient(
            config.wsdl,
            loader=FakeLoader(),
            transport=seen["transport"],
            username=config.username,
            password=config.password,
            header_name=config.header_name,
        )

    monkeypatch.setattr(cli, "_make_client", make)
    return seen


def test_call_prints_body(fake_client: dict) -> None:
    result = runner.invoke(
        cli.app,
        ["call", "http://example.com/stock?wsdl", "GetPrice", "-p", "Item=apple", "-p", "Qty=2"],
    )
    assert result.exit_code == 0, result.output
    assert "<Price>34.5</Price>" in result.output
    payload = fake_client["transport"].requests[0]["payload"]
    assert b"<Item>apple</Item>" in payload
    assert b"<Qty>2</Qty>" in payload
    assert payload.index(b"<Item>") < payload.index(b"<Qty>")


def test_call_header_and_credentials(fake_client: dict) -> None:
    result = runner.invoke(
        cli.app,
        [
            "call", "service.wsdl", "GetPrice",
            "-H", "Token=t1", "--header-name", "AuthHeader",
            "--username", "user", "--password", "secret",
        ],
    )
    assert result.exit_code == 0, result.output
    sent = fake_client["transport"].requests[0]
    assert sent["auth"] == ("user", "secret")
    assert b"AuthHeader" in sent["payload"]
    assert b"<Token>t1</Token>" in sent["payload"]


def test_call_rejects_bad_param(fake_client: dict) -> None:
    result = runner.invoke(cli.app, ["call", "service.wsdl", "GetPrice", "-p", "novalue"])
    assert result.exit_code != 0
    assert fake_client["transport"].requests == []


def test_call_failure_prints_payload(fake_client: dict) -> None:
    fake_client["transport"].error = TransportError("connection refused")
    result = runner.invoke(cli.app, ["call", "service.wsdl", "GetPrice", "-p", "Item=apple"])
    assert result.exit_code == 1
    assert "connection refused" in result.output
    assert "Request payload:" in result.output
    assert "<Item>apple</Item>" in result.output


def test_call_definitions_failure(tmp_path) -> None:
    result = runner.invoke(cli.app, ["call", str(tmp_path / "missing.wsdl"), "GetPrice"])
    assert result.exit_code == 1
    assert "cannot read WSDL" in result.output


def test_describe(wsdl_file: str) -> None:
    result = runner.invoke(cli.app, ["describe", wsdl_file])
    assert result.exit_code == 0, result.output
    assert "namespace: http://example.com/stock/" in result.output
    assert "endpoint: StockQuoteService/StockQuotePort http://example.com/stock/endpoint" in result.output
    assert "action: GetLastTradePrice -> http://example.com/GetLastTradePrice" in result.output
    assert "action: GetHistory -> http://example.com/GetHistory" in result.output


def test_describe_unreadable(tmp_path) -> None:
    result = runner.invoke(cli.app, ["describe", str(tmp_path / "missing.wsdl")])
    assert result.exit_code == 1
    assert "cannot read WSDL" in result.output
