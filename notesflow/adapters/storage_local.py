from __future__ import annotations

import json
import logging
import os
from typing import Dict, Optional

from notesflow.domain.ports import CredentialStore


class StorageLocal(CredentialStore):
    """Local filesystem storage for user settings and the bearer credential (JSON)."""

    SETTINGS_FILE = "user_settings.json"
    CREDENTIALS_FILE = "credentials.json"

    def __init__(self, root_dir: str = ".") -> None:
        self.root = root_dir
        self._log = logging.getLogger(__name__)

    # ---- User settings ----
    def save_user_settings(self, payload: Dict) -> None:
        self._write_json(self.SETTINGS_FILE, payload)

    def load_user_settings(self) -> Optional[Dict]:
        return self._read_json(self.SETTINGS_FILE)

    # ---- Credential store ----
    def get(self, key: str) -> Optional[str]:
        data = self._read_json(self.CREDENTIALS_FILE) or {}
        value = data.get(key)
        if value is None:
            return None
        text = str(value)
        return text or None

    def set(self, key: str, value: str) -> None:
        data = self._read_json(self.CREDENTIALS_FILE) or {}
        data[key] = value
        self._write_json(self.CREDENTIALS_FILE, data, private=True)

    def remove(self, key: str) -> None:
        data = self._read_json(self.CREDENTIALS_FILE)
        if not data or key not in data:
            return
        del data[key]
        if data:
            self._write_json(self.CREDENTIALS_FILE, data, private=True)
        else:
            os.remove(self._path(self.CREDENTIALS_FILE))

    # ---- Internal helpers ----
    def _path(self, name: str) -> str:
        return os.path.join(self.root, name)

    def _read_json(self, name: str) -> Optional[Dict]:
        path = self._path(name)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                self._log.warning("Ignoring unreadable %s", path)
                return None
        return data if isinstance(data, dict) else None

    def _write_json(self, name: str, payload: Dict, *, private: bool = False) -> None:
        os.makedirs(self.root, exist_ok=True)
        path = self._path(name)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        if private:
            os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, path)
