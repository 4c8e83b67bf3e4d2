from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from PySide6.QtWidgets import QWidget


@dataclass(frozen=True)
class PageDef:
    """Entrada del menú lateral.

    ``key`` es "home" o la clave de un recurso del catálogo (la que usa
    ``MainWindow.navigate``); la página no se construye hasta que se navega a
    ella por primera vez.
    """

    key: str
    title: str
    factory: Callable[[], QWidget]
