from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Mapping, Optional

from ..domain.entities import DEFAULT_PAGE_SIZE
from ..utils.logging import env_requests_debug

DEFAULT_API_BASE_URL = "https://notesflow-pro-backend.vercel.app/api"


@dataclass
class SettingsConfig:
    """Typed runtime settings that persist via StorageLocal."""

    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_s: int = 0
    search_debounce_ms: int = 300
    page_size: int = DEFAULT_PAGE_SIZE
    credential_dir: str = "."


def _default_debug_logging() -> bool:
    return env_requests_debug()


class SettingsVM:
    """Keeps app settings state and validation, no I/O here.

    ``request_timeout_s == 0`` means no timeout, which is the default.
    """

    def __init__(
        self,
        *,
        config: Optional[SettingsConfig] = None,
        on_save: Optional[Callable[[dict], None]] = None,
    ) -> None:
        self.config = config or SettingsConfig()
        self.on_save = on_save
        self.debug_logging: bool = _default_debug_logging()

    # ------------------------------------------------------------------
    # Properties bridging to the typed config
    # ------------------------------------------------------------------
    @property
    def api_base_url(self) -> str:
        return self.config.api_base_url

    @api_base_url.setter
    def api_base_url(self, value: str) -> None:
        self.config = replace(self.config, api_base_url=self._coerce_url(value))

    @property
    def request_timeout_s(self) -> int:
        return self.config.request_timeout_s

    @request_timeout_s.setter
    def request_timeout_s(self, value: int) -> None:
        coerced = self._coerce_int("request_timeout_s", value, allow_negative=False)
        self.config = replace(self.config, request_timeout_s=coerced)

    @property
    def search_debounce_ms(self) -> int:
        return self.config.search_debounce_ms

    @property
    def page_size(self) -> int:
        return self.config.page_size

    @property
    def credential_dir(self) -> str:
        return self.config.credential_dir

    # ------------------------------------------------------------------
    def is_valid(self) -> bool:
        if not self.api_base_url.startswith(("http://", "https://")):
            return False
        if self.page_size < 1 or self.search_debounce_ms < 0:
            return False
        return True

    def apply_dict(self, payload: Mapping[str, Any]) -> None:
        """Apply persisted settings to the view-model."""

        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping of flat keys.")

        allowed_keys = {*SettingsConfig.__annotations__.keys(), "debug_logging"}
        unknown = sorted(key for key in payload if key not in allowed_keys)
        if unknown:
            raise ValueError(f"Unsupported settings keys: {', '.join(unknown)}")

        updates = {}
        for cfg_key in SettingsConfig.__annotations__.keys():
            if cfg_key in payload:
                updates[cfg_key] = self._coerce_config_value(cfg_key, payload[cfg_key])
        if updates:
            self.config = replace(self.config, **updates)

        if "debug_logging" in payload:
            self.debug_logging = self._coerce_bool(payload["debug_logging"])

    def to_dict(self) -> dict:
        snapshot = asdict(self.config)
        snapshot["debug_logging"] = bool(self.debug_logging)
        return snapshot

    def cmd_save(self) -> None:
        if not self.is_valid():
            raise ValueError("Settings invalid")
        if self.on_save:
            self.on_save(self.to_dict())

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _coerce_config_value(self, key: str, raw: Any) -> Any:
        if key == "api_base_url":
            return self._coerce_url(raw)
        if key == "credential_dir":
            return self._coerce_dir(raw)
        if key == "request_timeout_s":
            return self._coerce_int(key, raw, allow_negative=False)
        if key == "search_debounce_ms":
            return self._coerce_int(key, raw, allow_negative=False)
        if key == "page_size":
            value = self._coerce_int(key, raw, allow_negative=False)
            if value < 1:
                raise ValueError("page_size must be at least 1.")
            return value
        raise ValueError(f"Unhandled config field: {key}")

    @staticmethod
    def _coerce_url(value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("api_base_url must be a non-empty string.")
        return value.strip().rstrip("/")

    @staticmethod
    def _coerce_dir(value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("credential_dir must be a string path.")
        return value.strip() or "."

    @staticmethod
    def _coerce_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    @staticmethod
    def _coerce_int(name: str, value: Any, *, allow_negative: bool = True) -> int:
        if isinstance(value, bool):
            raise ValueError(f"{name} must be an integer.")
        if isinstance(value, (int, float)):
            coerced = int(value)
        elif isinstance(value, str):
            try:
                coerced = int(value.strip())
            except (TypeError, ValueError) as exc:
                raise ValueError(f"{name} must be an integer.") from exc
        else:
            raise ValueError(f"{name} must be an integer.")
        if not allow_negative and coerced < 0:
            raise ValueError(f"{name} must be non-negative.")
        return coerced
