from __future__ import annotations

from dataclasses import dataclass

from clinicpanel.app.application.ports.api_port import ApiClient
from clinicpanel.app.application.ports.sesion_port import SesionStore
from clinicpanel.app.application.recursos.catalogo import CATALOGO, get_recurso
from clinicpanel.app.application.recursos.pagina import PaginaRecurso
from clinicpanel.app.bootstrap_logging import get_logger
from clinicpanel.app.config import AppConfig
from clinicpanel.app.domain.recursos import RecursoDef
from clinicpanel.app.infrastructure.http.api_client import HttpxApiClient
from clinicpanel.app.infrastructure.sesion import SesionArchivo

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class AppContainer:
    config: AppConfig
    sesion: SesionStore
    api: ApiClient
    catalogo: tuple[RecursoDef, ...]

    def build_pagina(self, clave: str, *, on_login_required=None) -> PaginaRecurso:
        return PaginaRecurso(get_recurso(clave), self.api, self.sesion, on_login_required=on_login_required)

    async def close(self) -> None:
        await self.api.close()


def build_container(config: AppConfig) -> AppContainer:
    sesion = SesionArchivo(config.session_path)
    if config.token_inicial:
        LOGGER.info("session_seeded source=env")
        sesion.set_token(config.token_inicial)

    api = HttpxApiClient(config.api_url, timeout=config.http_timeout)
    return AppContainer(config=config, sesion=sesion, api=api, catalogo=CATALOGO)
