from __future__ import annotations

from typing import Callable, Sequence

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFrame, QGridLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from clinicpanel.app.domain.recursos import RecursoDef

APP_TITLE = "Sistema de Gestión Médica"


class _TarjetaRecurso(QFrame):
    def __init__(self, recurso: RecursoDef, on_access: Callable[[str], None]) -> None:
        super().__init__()
        self.setFrameShape(QFrame.StyledPanel)
        layout = QVBoxLayout(self)
        titulo = QLabel(recurso.titulo)
        titulo.setObjectName("tituloTarjeta")
        descripcion = QLabel(recurso.descripcion)
        descripcion.setWordWrap(True)
        self.btn_acceder = QPushButton("Acceder")
        self.btn_acceder.clicked.connect(lambda: on_access(recurso.clave))
        layout.addWidget(titulo)
        layout.addWidget(descripcion)
        layout.addWidget(self.btn_acceder)


class PageHome(QWidget):
    """Panel principal: una tarjeta por sección del menú."""

    COLUMNAS = 3

    def __init__(self, recursos: Sequence[RecursoDef], on_navigate: Callable[[str], None]) -> None:
        super().__init__()
        layout = QVBoxLayout(self)
        title = QLabel(APP_TITLE)
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        grid = QGridLayout()
        self.tarjetas: list[_TarjetaRecurso] = []
        for index, recurso in enumerate(recursos):
            tarjeta = _TarjetaRecurso(recurso, on_navigate)
            self.tarjetas.append(tarjeta)
            grid.addWidget(tarjeta, index // self.COLUMNAS, index % self.COLUMNAS)
        layout.addLayout(grid)
        layout.addStretch(1)

    def on_show(self) -> None:
        pass
