from __future__ import annotations

from PySide6.QtWidgets import (
    QDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from clinicpanel.app.application.ports.sesion_port import SesionStore
from clinicpanel.app.bootstrap_logging import get_logger

LOGGER = get_logger(__name__)


class SesionDialog(QDialog):
    """Frontera de login: recibe el token emitido por el flujo de acceso del backend."""

    def __init__(self, sesion: SesionStore, *, api_url: str, parent=None) -> None:
        super().__init__(parent)
        self._sesion = sesion
        self.setModal(True)
        self.setWindowTitle("Iniciar Sesión")

        layout = QVBoxLayout(self)
        self.lbl_info = QLabel(f"Introduce el token de acceso para {api_url}")
        self.lbl_info.setWordWrap(True)
        layout.addWidget(self.lbl_info)

        form = QFormLayout()
        self.token_input = QLineEdit()
        self.token_input.setEchoMode(QLineEdit.Password)
        form.addRow(QLabel("Token"), self.token_input)
        layout.addLayout(form)

        btn_row = QHBoxLayout()
        self.btn_entrar = QPushButton("Entrar")
        self.btn_entrar.setDefault(True)
        self.btn_entrar.clicked.connect(self._on_entrar)
        self.btn_salir = QPushButton("Salir")
        self.btn_salir.clicked.connect(self.reject)
        btn_row.addStretch(1)
        btn_row.addWidget(self.btn_entrar)
        btn_row.addWidget(self.btn_salir)
        layout.addLayout(btn_row)

    def _on_entrar(self) -> None:
        token = self.token_input.text().strip()
        if not token:
            QMessageBox.warning(self, self.windowTitle(), "El token es obligatorio.")
            return
        self._sesion.set_token(token)
        LOGGER.info("session_started source=dialog")
        self.accept()
