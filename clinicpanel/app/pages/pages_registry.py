from __future__ import annotations

from typing import Callable, Dict, List

from clinicpanel.app.application.recursos.catalogo import MENU
from clinicpanel.app.container import AppContainer
from clinicpanel.app.pages.page_def import PageDef
from clinicpanel.app.ui.async_runner import AsyncRunner


class PageRegistry:
    """Registro in-memory de PageDef.

    La navegación (MainWindow) consume PageDef y crea widgets lazy vía factory().
    """

    def __init__(self) -> None:
        self._pages: Dict[str, PageDef] = {}

    def register(self, page: PageDef) -> None:
        if page.key in self._pages:
            raise ValueError(f"Página duplicada: {page.key}")
        self._pages[page.key] = page

    def get(self, key: str) -> PageDef:
        return self._pages[key]

    def list(self) -> List[PageDef]:
        # Orden estable por inserción
        return list(self._pages.values())


def register_pages(
    registry: PageRegistry,
    container: AppContainer,
    runner: AsyncRunner,
    *,
    navigate: Callable[[str], None],
    on_login_required: Callable[[], None],
) -> None:
    from clinicpanel.app.pages.home.page import PageHome
    from clinicpanel.app.pages.medicamentos.page import PageMedicamentos
    from clinicpanel.app.pages.recursos.page import PageRecurso

    registry.register(PageDef("home", "Inicio", lambda: PageHome(MENU, navigate)))
    for recurso in MENU:
        if recurso.clave == "medicamentos":
            factory = lambda: PageMedicamentos(container, runner, on_login_required=on_login_required)
        else:
            factory = lambda clave=recurso.clave: PageRecurso(
                container, clave, runner, on_login_required=on_login_required
            )
        registry.register(PageDef(recurso.clave, recurso.titulo, factory))


def get_pages(
    container: AppContainer,
    runner: AsyncRunner,
    *,
    navigate: Callable[[str], None],
    on_login_required: Callable[[], None],
) -> List[PageDef]:
    """Bootstrap UI: inicio + una página por recurso del menú."""
    reg = PageRegistry()
    register_pages(reg, container, runner, navigate=navigate, on_login_required=on_login_required)
    return reg.list()
