from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from clinicpanel.app.bootstrap_logging import get_logger

LOGGER = get_logger(__name__)

SESSION_FILENAME = "session.json"


class SesionMemoria:
    """Token de sesión en memoria del proceso."""

    def __init__(self, token: Optional[str] = None) -> None:
        self._token = _normalize(token)

    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = _normalize(token)

    def clear(self) -> None:
        self._token = None


class SesionArchivo(SesionMemoria):
    """Token persistido en disco entre ejecuciones (equivalente al almacenamiento local del navegador)."""

    def __init__(self, path: Path) -> None:
        super().__init__(_read_token(path))
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def set_token(self, token: str) -> None:
        super().set_token(token)
        if self.token() is None:
            self.clear()
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"token": self.token()}), encoding="utf-8")
        os.chmod(tmp, 0o600)
        os.replace(tmp, self._path)
        LOGGER.info("session_stored path=%s", self._path)

    def clear(self) -> None:
        super().clear()
        if self._path.exists():
            self._path.unlink()
            LOGGER.info("session_cleared path=%s", self._path)


def _normalize(token: Optional[str]) -> Optional[str]:
    if token is None:
        return None
    return token.strip() or None


def _read_token(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        LOGGER.warning("session_file_unreadable path=%s", path)
        return None
    if not isinstance(data, dict) or not isinstance(data.get("token"), str):
        return None
    return _normalize(data["token"])
