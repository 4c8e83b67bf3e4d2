# config.py
"""
Configuración de ClinicPanel.

Responsabilidades:
- Resolver la URL base de la API (arg → env → default) con trazabilidad en logs
- Leer timeout, directorios de datos/logs y formato de log desde el entorno

No contiene lógica de recursos ni de UI.
"""

from __future__ import annotations

from dataclasses import dataclass
from os import getenv
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from clinicpanel.app.bootstrap_logging import get_logger
from clinicpanel.app.domain.exceptions import ValidationError

LOGGER = get_logger(__name__)

DEFAULT_API_URL = "http://localhost:3001"
DEFAULT_TIMEOUT_SECONDS = 15.0

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class AppConfig:
    api_url: str
    http_timeout: float
    data_dir: Path
    log_dir: Path
    log_json: bool
    token_inicial: Optional[str] = None

    @property
    def session_path(self) -> Path:
        return self.data_dir / "session.json"


def resolve_api_url(api_url_arg: str | None = None, *, emit_log: bool = True) -> str:
    """Resuelve la URL base de la API desde arg/env/default."""
    if api_url_arg:
        raw, source = api_url_arg, "arg"
    else:
        configured = getenv("CLINICPANEL_API_URL")
        raw, source = (configured, "env") if configured else (DEFAULT_API_URL, "default")
    url = raw.strip().rstrip("/")
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValidationError(f"URL de API inválida ({source}): {raw!r}")
    if emit_log:
        LOGGER.info("api_url_resolved url=%s source=%s", url, source)
    return url


def resolve_timeout() -> float:
    raw = getenv("CLINICPANEL_HTTP_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValidationError(f"CLINICPANEL_HTTP_TIMEOUT no es numérico: {raw!r}") from exc
    if value <= 0:
        raise ValidationError("CLINICPANEL_HTTP_TIMEOUT debe ser mayor que 0")
    return value


def data_dir() -> Path:
    """Directorio donde se guarda la sesión."""
    return Path(getenv("CLINICPANEL_DATA_DIR", "./data")).expanduser()


def log_dir() -> Path:
    return Path(getenv("CLINICPANEL_LOG_DIR", "./logs")).expanduser()


def _flag(name: str, default: bool) -> bool:
    raw = getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValidationError(f"{name} debe ser booleano (1/0, true/false): {raw!r}")


def log_json_enabled() -> bool:
    return _flag("CLINICPANEL_LOG_JSON", True)


def load_config(api_url_arg: str | None = None) -> AppConfig:
    token = (getenv("CLINICPANEL_API_TOKEN") or "").strip() or None
    return AppConfig(
        api_url=resolve_api_url(api_url_arg),
        http_timeout=resolve_timeout(),
        data_dir=data_dir(),
        log_dir=log_dir(),
        log_json=log_json_enabled(),
        token_inicial=token,
    )
