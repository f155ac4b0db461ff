"""Service description: what the client needs from a WSDL, and the protocol for loading it."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Protocol, runtime_checkable


@dataclass(frozen=True)
class Port:
    name: str
    binding: str = ""
    addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class Service:
    name: str
    ports: tuple[Port, ...] = ()


@dataclass(frozen=True)
class Definitions:
    """
    Parsed description. Replaced as a whole on reload, never mutated.
    actions: operation name -> soapAction (only operations that declare one).
    """

    target_namespace: str = ""
    schema_namespace: str = ""
    services: tuple[Service, ...] = ()
    actions: Mapping[str, str] = field(default_factory=dict)

    def get_soap_action(self, operation: str) -> str:
        return self.actions.get(operation, "")

    def first_address(self) -> str | None:
        """First address of the first port of the first service; no failover."""
        if not self.services:
            return None
        ports = self.services[0].ports
        if not ports or not ports[0].addresses:
            return None
        return ports[0].addresses[0]


@runtime_checkable
class DefinitionsLoader(Protocol):
    """
    How to obtain Definitions from a source locator. User may supply one (cache, registry, tests).
    Raises DefinitionsSourceError when the source is unreachable or unparseable.
    """

    async def load(self, source: str) -> Definitions:
        ...


class StaticDefinitionsLoader:
    """Loader returning a fixed Definitions regardless of source."""

    def __init__(self, definitions: Definitions) -> None:
        self._definitions = definitions

    async def load(self, source: str) -> Definitions:
        return self._definitions
