"""
CLI for poking at a SOAP service: call an operation, or describe what the WSDL offers.
Both commands build a SoapClient the same way library users do.
"""
import asyncio
import logging
from typing import List, Optional

import typer

from soaplink.core.config import ClientConfig
from soaplink.exceptions import ErrorWithPayload, SoapError
from soaplink.rpc.client import SoapClient

app = typer.Typer(help="soaplink CLI: call SOAP operations described by a WSDL.")


def _make_client(config: ClientConfig) -> SoapClient:
    return SoapClient.from_config(config)


def _pairs(values: Optional[List[str]], option: str) -> Optional[dict]:
    """["a=1", "b=2"] -> {"a": "1", "b": "2"}; order kept."""
    if values is None:
        return None
    out: dict = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected key=value, got {item!r}", param_hint=option)
        out[key] = value
    return out


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def call(
    wsdl: str = typer.Argument(..., help="WSDL URL or path"),
    method: str = typer.Argument(..., help="Operation name (e.g. GetPrice)"),
    param: Optional[List[str]] = typer.Option(None, "--param", "-p", help="Body parameter key=value (repeatable)"),
    header: Optional[List[str]] = typer.Option(None, "--header", "-H", help="Header parameter key=value (repeatable)"),
    header_name: str = typer.Option("", "--header-name", help="Element wrapping header parameters"),
    username: str = typer.Option("", "--username", "-u", envvar="SOAP_USERNAME"),
    password: str = typer.Option("", "--password", envvar="SOAP_PASSWORD"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Call METHOD and print the response Body."""
    _setup_logging(verbose)
    params = _pairs(param, "--param") or {}
    header_params = _pairs(header, "--header")
    config = ClientConfig(
        wsdl=wsdl, username=username, password=password, header_name=header_name, timeout=timeout
    )

    async def run() -> bytes:
        client = _make_client(config)
        async with client:
            response = await client.call(method, params, header_params=header_params)
        return response.body

    try:
        body = asyncio.run(run())
    except ErrorWithPayload as e:
        typer.echo(f"Error: {e}", err=True)
        typer.echo("Request payload:", err=True)
        typer.echo(e.payload.decode("utf-8", errors="replace"), err=True)
        raise typer.Exit(1)
    except SoapError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(body.decode("utf-8", errors="replace").strip())


@app.command()
def describe(
    wsdl: str = typer.Argument(..., help="WSDL URL or path"),
    username: str = typer.Option("", "--username", "-u", envvar="SOAP_USERNAME"),
    password: str = typer.Option("", "--password", envvar="SOAP_PASSWORD"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Print namespace, endpoints and operation -> SOAPAction map."""
    _setup_logging(verbose)
    config = ClientConfig(wsdl=wsdl, username=username, password=password)

    async def run():
        client = _make_client(config)
        async with client:
            await client.set_wsdl(wsdl)
        return client

    try:
        client = asyncio.run(run())
    except SoapError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    definitions = client.definitions
    if client.definitions_error is not None or definitions is None:
        typer.echo(f"Error: {client.definitions_error or 'wsdl definitions not found'}", err=True)
        raise typer.Exit(1)

    typer.echo(f"namespace: {definitions.target_namespace}")
    for service in definitions.services:
        for port in service.ports:
            for address in port.addresses:
                typer.echo(f"endpoint: {service.name}/{port.name} {address}")
    for operation, action in sorted(definitions.actions.items()):
        typer.echo(f"action: {operation} -> {action}")


def main() -> None:
    """Entry point for the soaplink console command."""
    app()


if __name__ == "__main__":
    main()
