from __future__ import annotations

import asyncio
from typing import Callable, Optional

from clinicpanel.app.application.ports.api_port import ApiClient
from clinicpanel.app.application.ports.sesion_port import TokenProvider
from clinicpanel.app.application.recursos.controller import RecursoController
from clinicpanel.app.application.recursos.lookups import LookupResolver
from clinicpanel.app.domain.recursos import RecursoDef


class PaginaRecurso:
    """Una página = controlador del recurso + sus lookups.

    ``mount()`` lanza el listado y los lookups a la vez; cada uno tiene su
    propia ranura de error, así un lookup caído no oculta ni bloquea la tabla.
    """

    def __init__(
        self,
        recurso: RecursoDef,
        api: ApiClient,
        sesion: TokenProvider,
        *,
        on_login_required: Optional[Callable[[], None]] = None,
    ) -> None:
        self.recurso = recurso
        self.controller = RecursoController(recurso, api, sesion, on_login_required=on_login_required)
        self.lookups = LookupResolver(recurso.lookups, api, sesion)

    async def mount(self) -> bool:
        listado_ok, _ = await asyncio.gather(self.controller.initialize(), self.lookups.load_all())
        return listado_ok

    async def refresh(self) -> bool:
        """Vuelta a la página: relista y reintenta los lookups caídos."""
        listado_ok, _ = await asyncio.gather(self.controller.list(), self.lookups.reload_failed())
        return listado_ok

    @property
    def error_visible(self) -> str:
        return self.controller.error or self.lookups.error

    def select_reference(self, nombre: str, ref_id: str) -> None:
        campo = self.recurso.campo(nombre)
        items = self.lookups.items(campo.lookup) if campo.lookup else ()
        self.controller.select_reference(nombre, ref_id, items)
