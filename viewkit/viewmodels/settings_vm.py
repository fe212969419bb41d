from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional

from ..utils.logging import env_requests_debug

_ENV_KEYS = {
    "base_url": "VIEWKIT_BASE_URL",
    "api_key": "VIEWKIT_API_KEY",
    "request_timeout_s": "VIEWKIT_REQUEST_TIMEOUT_S",
    "retries": "VIEWKIT_RETRIES",
}


@dataclass
class ServiceSettings:
    """Typed runtime settings for the data service and busy indicator."""

    base_url: str = ""
    api_key: str = ""
    request_timeout_s: int = 10
    retries: int = 0
    busy_indicator_delay_ms: int = 2000
    csrf_enabled: bool = True


class SettingsVM:
    """Keeps service settings state and validation, no I/O here."""

    def __init__(self, *, config: Optional[ServiceSettings] = None) -> None:
        self.config = config or ServiceSettings()
        self.debug_logging: bool = env_requests_debug()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SettingsVM":
        env = os.environ if environ is None else environ
        vm = cls()
        vm.apply_dict({field: env[var] for field, var in _ENV_KEYS.items() if env.get(var)})
        return vm

    # ------------------------------------------------------------------
    # Properties bridging to the typed config
    # ------------------------------------------------------------------
    @property
    def base_url(self) -> str:
        return self.config.base_url

    @base_url.setter
    def base_url(self, value: Any) -> None:
        text = "" if value is None else str(value).strip()
        if text and not text.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {text!r}")
        self.config = replace(self.config, base_url=text.rstrip("/"))

    @property
    def api_key(self) -> str:
        return self.config.api_key

    @api_key.setter
    def api_key(self, value: Any) -> None:
        self.config = replace(self.config, api_key="" if value is None else str(value).strip())

    @property
    def request_timeout_s(self) -> int:
        return self.config.request_timeout_s

    @request_timeout_s.setter
    def request_timeout_s(self, value: Any) -> None:
        coerced = self._coerce_int("request_timeout_s", value, minimum=1)
        self.config = replace(self.config, request_timeout_s=coerced)

    @property
    def retries(self) -> int:
        return self.config.retries

    @retries.setter
    def retries(self, value: Any) -> None:
        self.config = replace(self.config, retries=self._coerce_int("retries", value, minimum=0))

    @property
    def busy_indicator_delay_ms(self) -> int:
        return self.config.busy_indicator_delay_ms

    @busy_indicator_delay_ms.setter
    def busy_indicator_delay_ms(self, value: Any) -> None:
        coerced = self._coerce_int("busy_indicator_delay_ms", value, minimum=0)
        self.config = replace(self.config, busy_indicator_delay_ms=coerced)

    @property
    def csrf_enabled(self) -> bool:
        return self.config.csrf_enabled

    @csrf_enabled.setter
    def csrf_enabled(self, value: Any) -> None:
        self.config = replace(self.config, csrf_enabled=self._coerce_bool(value))

    # ------------------------------------------------------------------
    def is_valid(self) -> bool:
        return bool(self.base_url)

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply persisted or environment settings to the view-model."""
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")
        allowed = {*ServiceSettings.__annotations__.keys(), "debug_logging"}
        unknown = sorted(set(payload) - allowed)
        if unknown:
            raise ValueError(f"Unknown settings keys: {', '.join(unknown)}")
        for key, value in payload.items():
            if key == "debug_logging":
                self.debug_logging = self._coerce_bool(value)
            else:
                setattr(self, key, value)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self.config)
        data["debug_logging"] = self.debug_logging
        return data

    # ------------------------------------------------------------------
    @staticmethod
    def _coerce_int(name: str, value: Any, *, minimum: int) -> int:
        try:
            number = int(str(value).strip())
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be an integer, got {value!r}") from None
        if number < minimum:
            raise ValueError(f"{name} must be >= {minimum}")
        return number

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)


__all__ = ["ServiceSettings", "SettingsVM"]
