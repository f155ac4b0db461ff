"""
SoapClient — calls operations of one SOAP service described by a WSDL.
The description is loaded lazily by the first call and, optionally, reloaded in the background;
reloads and calls never overlap (see CallGate). Transport and loader are pluggable;
httpx + lxml out of the box.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Mapping

import httpx

from soaplink.core.config import MIN_REFRESH_INTERVAL, ClientConfig
from soaplink.core.gate import CallGate
from soaplink.core.request import Request, RequestStruct, new_request_by_struct
from soaplink.core.responses import Response
from soaplink.exceptions import (
    DefinitionsNotFoundError,
    DefinitionsSourceError,
    EnvelopeDecodeError,
    ErrorWithPayload,
    NoEndpointError,
    NoServicesError,
    SoapError,
    TransportError,
)
from soaplink.rpc.envelope import SoapEnvelope, build_envelope, decode_envelope
from soaplink.rpc.protocol import SoapTransport
from soaplink.wsdl.loader import DEFAULT_TIMEOUT, WsdlLoader
from soaplink.wsdl.protocol import Definitions, DefinitionsLoader

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/xml;charset=UTF-8"
ACCEPT = "text/xml"


async def _sleep(seconds: float) -> None:
    """Wait between background reloads (overridable for tests)."""
    await asyncio.sleep(seconds)


def _check_source(wsdl: str) -> None:
    """Syntax only; nothing is fetched here."""
    try:
        httpx.URL(wsdl)
    except (httpx.InvalidURL, TypeError) as e:
        raise DefinitionsSourceError(f"malformed WSDL locator {wsdl!r}: {e}") from e


class HttpxSoapTransport:
    """Transport out of the box: httpx POST. Without a client, opens a short-lived AsyncClient per call."""

    def __init__(self, client: httpx.AsyncClient | None = None, *, timeout: float | None = None) -> None:
        self._client = client
        self._timeout = timeout if timeout is not None else DEFAULT_TIMEOUT

    async def post(
        self,
        url: str,
        payload: bytes,
        headers: Mapping[str, str],
        auth: tuple[str, str] | None = None,
    ) -> bytes:
        kwargs: dict[str, Any] = {"auth": auth} if auth else {}
        try:
            if self._client is not None:
                r = await self._client.post(url, content=payload, headers=dict(headers), **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    r = await client.post(url, content=payload, headers=dict(headers), **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"POST {url} failed: {e}") from e
        # Faults come back with 500; the envelope is decoded either way.
        logger.debug("POST %s -> %d (%d bytes)", url, r.status_code, len(r.content))
        return r.content


class SoapClient:
    """
    Facade: call(method, params) -> Response.
    Errors: DefinitionsSourceError / ConfigurationError until the description loads;
    ErrorWithPayload (carrying the request payload) for transport and decode failures.
    """

    def __init__(
        self,
        wsdl: str,
        *,
        transport: SoapTransport | None = None,
        loader: DefinitionsLoader | None = None,
        username: str = "",
        password: str = "",
        refresh_after: float = 0.0,
        header_name: str = "",
        header_params: Mapping[str, Any] | None = None,
    ) -> None:
        _check_source(wsdl)
        self._wsdl = wsdl
        self.username = username
        self.password = password
        # Must be set before the first call, otherwise has no effect.
        self.refresh_after = refresh_after
        self.header_name = header_name
        self.header_params = dict(header_params) if header_params is not None else None
        self._transport = transport if transport is not None else HttpxSoapTransport()
        self._loader = loader if loader is not None else WsdlLoader(auth=self._credentials)
        self.url = ""

        self._gate = CallGate()
        self._init_lock = asyncio.Lock()
        self._initialized = False
        # (definitions, error of the last load); replaced as one tuple.
        self._state: tuple[Definitions | None, SoapError | None] = (None, None)
        self._refresh_task: asyncio.Task[None] | None = None
        self._closed = False

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        *,
        transport: SoapTransport | None = None,
        loader: DefinitionsLoader | None = None,
        http_client: httpx.AsyncClient | None = None,
        header_params: Mapping[str, Any] | None = None,
    ) -> SoapClient:
        """Build from ClientConfig; http_client (if given) is shared by the default transport and loader."""
        client = cls(
            config.wsdl,
            transport=transport or HttpxSoapTransport(http_client, timeout=config.timeout),
            loader=loader,
            username=config.username,
            password=config.password,
            refresh_after=config.refresh_after,
            header_name=config.header_name,
            header_params=header_params,
        )
        if loader is None:
            client._loader = WsdlLoader(http_client, auth=client._credentials, timeout=config.timeout)
        return client

    @property
    def wsdl(self) -> str:
        return self._wsdl

    @property
    def definitions(self) -> Definitions | None:
        return self._state[0]

    @property
    def definitions_error(self) -> SoapError | None:
        return self._state[1]

    @property
    def auth(self) -> tuple[str, str] | None:
        """Basic auth only with both username and password; partial credentials are never sent."""
        if self.username and self.password:
            return (self.username, self.password)
        return None

    def _credentials(self) -> tuple[str, str] | None:
        return self.auth

    @property
    def refreshing(self) -> bool:
        """True while the background reload task is alive."""
        return self._refresh_task is not None and not self._refresh_task.done()

    async def call(
        self,
        method: str,
        params: Mapping[str, Any] | None = None,
        *,
        header_params: Mapping[str, Any] | None = None,
    ) -> Response:
        return await self.do(Request(method, params or {}, header_params))

    async def call_by_struct(self, s: RequestStruct) -> Response:
        return await self.do(new_request_by_struct(s))

    async def set_wsdl(self, wsdl: str) -> None:
        """Replace the description source and load it now, after in-flight calls and reloads finish."""
        _check_source(wsdl)
        async with self._gate.exclusive():
            self._wsdl = wsdl
            await self._load()
            self._start_refresh()
            self._initialized = True

    async def aclose(self) -> None:
        """Stop the background reload task for good. Calls keep working with the cached description."""
        self._closed = True
        task, self._refresh_task = self._refresh_task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def __aenter__(self) -> SoapClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def do(self, req: Request) -> Response:
        """Process one request: resolve endpoint and action, POST the envelope, decode the answer."""
        async with self._gate.shared():
            await self._ensure_initialized()
            definitions = self._checked_definitions()
            address = definitions.first_address()
            if address is None:
                raise NoEndpointError("first service has no port with a soap address")

            action = definitions.get_soap_action(req.method) or f"{self.url}/{req.method}"
            header_params = req.header_params if req.header_params is not None else self.header_params
            payload = build_envelope(
                req.method,
                req.params,
                namespace=definitions.schema_namespace,
                header_name=self.header_name,
                header_params=header_params,
            )
            headers = {"Content-Type": CONTENT_TYPE, "Accept": ACCEPT, "SOAPAction": action}
            logger.debug("SOAP call %s: action=%s url=%s (%d bytes)", req.method, action, address, len(payload))

            try:
                data = await self._transport.post(address, payload, headers, self.auth)
            except Exception as e:
                raise ErrorWithPayload(e, payload) from e

            try:
                envelope = decode_envelope(data)
            except EnvelopeDecodeError as e:
                partial = e.partial if isinstance(e.partial, SoapEnvelope) else SoapEnvelope()
                response = Response(header=partial.header, body=partial.body, payload=payload)
                raise ErrorWithPayload(e, payload, response=response) from e
            return Response(header=envelope.header, body=envelope.body, payload=payload)

    def _checked_definitions(self) -> Definitions:
        definitions, error = self._state
        if error is not None:
            raise error.with_traceback(None)
        if definitions is None:
            raise DefinitionsNotFoundError("wsdl definitions not found")
        if not definitions.services:
            raise NoServicesError("no services found in wsdl definitions")
        return definitions

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            await self._load()
            self._start_refresh()
            self._initialized = True

    async def _load(self) -> None:
        try:
            definitions = await self._loader.load(self._wsdl)
        except SoapError as e:
            error = e
        except Exception as e:
            error = DefinitionsSourceError(f"loading {self._wsdl!r} failed: {e}")
            error.__cause__ = e
        else:
            if definitions is not None:
                self.url = definitions.target_namespace.removesuffix("/")
                logger.info(
                    "Loaded WSDL %s: %d service(s), %d action(s)",
                    self._wsdl, len(definitions.services), len(definitions.actions),
                )
            self._state = (definitions, None)
            return
        logger.warning("Loading WSDL %s failed: %s", self._wsdl, error)
        self._state = (None, error)

    def _start_refresh(self) -> None:
        if self._closed or self.refreshing:
            return
        if self.refresh_after < MIN_REFRESH_INTERVAL:
            if self.refresh_after > 0:
                logger.warning(
                    "refresh_after=%ss is below the %ss minimum; background refresh disabled",
                    self.refresh_after, MIN_REFRESH_INTERVAL,
                )
            return
        logger.info("Refreshing WSDL %s every %ss", self._wsdl, self.refresh_after)
        self._refresh_task = asyncio.create_task(self._refresh_loop(self.refresh_after))
        self._refresh_task.add_done_callback(self._on_refresh_done)

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            await _sleep(interval)
            async with self._gate.exclusive():
                await self._load()

    def _on_refresh_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("WSDL refresh task stopped", exc_info=exc)
