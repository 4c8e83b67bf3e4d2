from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol


@dataclass(frozen=True, slots=True)
class RespuestaApi:
    """Respuesta HTTP ya decodificada; los códigos no-2xx no se lanzan como excepción."""

    status_code: int
    datos: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ApiClient(Protocol):
    """Puerto de acceso a la API REST de la clínica.

    Las rutas son relativas a ``/api`` (p. ej. ``"pacientes"`` o ``"pacientes/7"``).
    Un fallo de transporte se lanza como ``ErrorConexion``.
    """

    async def request(
        self,
        method: str,
        ruta: str,
        *,
        token: str,
        json: Optional[Any] = None,
    ) -> RespuestaApi:
        """Ejecuta la petición autenticada con ``Authorization: Bearer <token>``."""

    async def close(self) -> None:
        """Libera las conexiones abiertas."""
