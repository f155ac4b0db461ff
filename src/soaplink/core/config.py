"""Single client config object: built in code or loaded from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any

# Background refresh below this interval is ignored.
MIN_REFRESH_INTERVAL = 15 * 60.0


def load_config_from_env(prefix: str = "SOAP_", **defaults: Any) -> dict[str, Any]:
    """Load from os.environ with prefix and defaults. SOAP_WSDL=... -> {"wsdl": "..."}."""
    result = dict(defaults)
    for key, value in os.environ.items():
        if key.startswith(prefix):
            name = key[len(prefix):].lower()
            result[name] = value
    return result


@dataclass
class ClientConfig:
    """
    Client config. refresh_after is in seconds (0 disables; effective only >= MIN_REFRESH_INTERVAL).
    timeout applies to the default httpx transport and WSDL loader.
    """

    wsdl: str
    username: str = ""
    password: str = ""
    refresh_after: float = 0.0
    header_name: str = ""
    timeout: float | None = None

    @classmethod
    def from_env(cls, prefix: str = "SOAP_", **defaults: Any) -> ClientConfig:
        """SOAP_WSDL, SOAP_USERNAME, SOAP_PASSWORD, SOAP_REFRESH_AFTER, SOAP_HEADER_NAME, SOAP_TIMEOUT."""
        raw = load_config_from_env(prefix, **defaults)
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in raw.items() if k in known}
        if "wsdl" not in values:
            raise ValueError(f"{prefix}WSDL is not set")
        if values.get("refresh_after") not in (None, ""):
            values["refresh_after"] = float(values["refresh_after"])
        else:
            values.pop("refresh_after", None)
        if values.get("timeout") not in (None, ""):
            values["timeout"] = float(values["timeout"])
        else:
            values.pop("timeout", None)
        return cls(**values)

    @property
    def refresh_enabled(self) -> bool:
        return self.refresh_after >= MIN_REFRESH_INTERVAL

    @property
    def auth(self) -> tuple[str, str] | None:
        """Basic auth pair, only when both parts are set."""
        if self.username and self.password:
            return (self.username, self.password)
        return None
