from __future__ import annotations

from typing import Optional, Protocol


class TokenProvider(Protocol):
    """Capacidad de lectura del token de sesión que recibe el controlador."""

    def token(self) -> Optional[str]:
        """Devuelve el token bearer vigente o ``None`` si no hay sesión."""


class SesionStore(TokenProvider, Protocol):
    """Almacén de sesión: lo escribe el login y lo limpia el logout."""

    def set_token(self, token: str) -> None:
        ...

    def clear(self) -> None:
        ...
