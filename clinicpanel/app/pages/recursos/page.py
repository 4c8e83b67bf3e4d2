from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTableWidget,
    QVBoxLayout,
    QWidget,
)

from clinicpanel.app.application.recursos.presentacion import fila
from clinicpanel.app.bootstrap_logging import get_logger
from clinicpanel.app.container import AppContainer
from clinicpanel.app.domain.estado import EstadoCarga, LookupsSnapshot, RecursoSnapshot
from clinicpanel.app.domain.recursos import CAMPO_ID, Operacion, Registro
from clinicpanel.app.pages.recursos.dialogs.registro_form import RegistroFormDialog
from clinicpanel.app.pages.shared.crud_page_helpers import confirm_delete, set_buttons_enabled
from clinicpanel.app.pages.shared.table_utils import selected_row, set_item
from clinicpanel.app.ui.async_runner import AsyncRunner

LOGGER = get_logger(__name__)


class _PuenteRecurso(QObject):
    """Señales emitidas desde el hilo asyncio; Qt las entrega en el hilo de la GUI."""

    snapshot = Signal(object)
    lookups = Signal(object)
    login_required = Signal()


class PageRecurso(QWidget):
    """Página CRUD genérica: tabla + acciones + formulario, sobre ``PaginaRecurso``."""

    def __init__(
        self,
        container: AppContainer,
        clave: str,
        runner: AsyncRunner,
        *,
        on_login_required: Optional[Callable[[], None]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._runner = runner
        self._on_login_required = on_login_required
        self._puente = _PuenteRecurso(self)
        self._pagina = container.build_pagina(clave, on_login_required=self._puente.login_required.emit)
        self._recurso = self._pagina.recurso
        self._snapshot: Optional[RecursoSnapshot] = None
        self._lookups = LookupsSnapshot()
        self._dialog: Optional[RegistroFormDialog] = None
        self._montada = False

        self._unsubscribers = [
            self._pagina.controller.subscribe(self._puente.snapshot.emit),
            self._pagina.lookups.subscribe(self._puente.lookups.emit),
        ]

        self._build_ui()
        self._connect_signals()

    @property
    def recurso_clave(self) -> str:
        return self._recurso.clave

    def _build_ui(self) -> None:
        root = QVBoxLayout(self)

        self.lbl_titulo = QLabel(self._recurso.titulo_tarjeta)
        self.lbl_titulo.setObjectName("tituloTarjeta")
        self.lbl_error = QLabel()
        self.lbl_error.setObjectName("alertaError")
        self.lbl_error.setWordWrap(True)
        self.lbl_error.setVisible(False)
        self.lbl_estado = QLabel()

        actions = QHBoxLayout()
        self.btn_nuevo = QPushButton(f"Nuevo {self._recurso.singular}")
        self.btn_ver = QPushButton("Ver")
        self.btn_editar = QPushButton("Editar")
        self.btn_eliminar = QPushButton("Eliminar")
        self.btn_nuevo.setVisible(self._recurso.permite(Operacion.CREAR))
        self.btn_ver.setVisible(self._recurso.permite(Operacion.VER))
        self.btn_editar.setVisible(self._recurso.permite(Operacion.EDITAR))
        self.btn_eliminar.setVisible(self._recurso.permite(Operacion.ELIMINAR))
        for button in (self.btn_nuevo, self.btn_ver, self.btn_editar, self.btn_eliminar):
            actions.addWidget(button)
        actions.addStretch(1)
        actions.addWidget(self.lbl_estado)

        self.table = QTableWidget(0, len(self._recurso.columnas))
        self.table.setHorizontalHeaderLabels([col.titulo for col in self._recurso.columnas])
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setSelectionMode(QTableWidget.SingleSelection)
        self.table.horizontalHeader().setStretchLastSection(True)

        root.addWidget(self.lbl_titulo)
        root.addWidget(self.lbl_error)
        root.addLayout(actions)
        root.addWidget(self.table)
        self._update_buttons()

    def _connect_signals(self) -> None:
        self._puente.snapshot.connect(self._on_snapshot)
        self._puente.lookups.connect(self._on_lookups)
        self._puente.login_required.connect(self._on_login)
        self.table.itemSelectionChanged.connect(self._update_buttons)
        self.btn_nuevo.clicked.connect(self._on_nuevo)
        self.btn_ver.clicked.connect(self._on_ver)
        self.btn_editar.clicked.connect(self._on_editar)
        self.btn_eliminar.clicked.connect(self._on_eliminar)

    def on_show(self) -> None:
        if not self._montada:
            self._montada = True
            self._runner.submit(self._pagina.mount())
            return
        self._runner.submit(self._pagina.refresh())

    def on_hide(self) -> None:
        pass

    def dispose(self) -> None:
        """Desconecta la página del controlador antes de destruir el widget."""
        for unsubscribe in self._unsubscribers:
            self._runner.call(unsubscribe)
        self._unsubscribers = []
        self._close_dialog()

    # ------------------------------------------------------------
    # Render
    # ------------------------------------------------------------

    def _on_snapshot(self, snapshot: RecursoSnapshot) -> None:
        registros_cambiados = self._snapshot is None or self._snapshot.registros != snapshot.registros
        self._snapshot = snapshot
        if registros_cambiados:
            self._render_tabla(snapshot.registros)
        self.lbl_estado.setText("Cargando…" if snapshot.estado_listado == EstadoCarga.CARGANDO else "")
        self._render_error()
        self._sync_dialog(snapshot)
        self._update_buttons()

    def _on_lookups(self, snapshot: LookupsSnapshot) -> None:
        self._lookups = snapshot
        self._render_error()
        if self._dialog is not None:
            self._dialog.set_lookups(snapshot.colecciones)

    def _render_tabla(self, registros: tuple[Registro, ...]) -> None:
        self.table.setRowCount(0)
        for index, registro in enumerate(registros):
            row = self.table.rowCount()
            self.table.insertRow(row)
            for col, valor in enumerate(fila(registro, self._recurso.columnas)):
                set_item(self.table, row, col, valor, data=index)

    def _render_error(self) -> None:
        mensaje = (self._snapshot.error if self._snapshot else "") or self._lookups.error
        self.lbl_error.setText(mensaje)
        self.lbl_error.setVisible(bool(mensaje))

    def _sync_dialog(self, snapshot: RecursoSnapshot) -> None:
        dialogo = snapshot.dialogo
        if not dialogo.abierto:
            self._close_dialog()
            return
        if self._dialog is not None and self._dialog.modo != dialogo.modo:
            self._close_dialog()
        if self._dialog is None:
            self._open_dialog(snapshot)
        if self._dialog is not None:
            self._dialog.set_error(snapshot.error)

    def _open_dialog(self, snapshot: RecursoSnapshot) -> None:
        dialog = RegistroFormDialog(
            self._recurso,
            snapshot.dialogo.registro or {},
            snapshot.dialogo.modo,
            self._lookups.colecciones,
            self,
        )
        controller = self._pagina.controller
        dialog.field_changed.connect(lambda nombre, valor: self._runner.call(controller.update_field, nombre, valor))
        dialog.reference_selected.connect(lambda nombre, ref_id: self._runner.call(self._pagina.select_reference, nombre, ref_id))
        dialog.save_requested.connect(lambda: self._runner.submit(controller.save()))
        dialog.close_requested.connect(lambda: self._runner.call(controller.close_dialog))
        self._dialog = dialog
        dialog.open()

    def _close_dialog(self) -> None:
        if self._dialog is None:
            return
        dialog, self._dialog = self._dialog, None
        if dialog.isVisible():
            dialog.close_silently()
        dialog.deleteLater()

    # ------------------------------------------------------------
    # Acciones
    # ------------------------------------------------------------

    def _selected_registro(self) -> Optional[Registro]:
        row = selected_row(self.table)
        if row is None or self._snapshot is None or row >= len(self._snapshot.registros):
            return None
        return self._snapshot.registros[row]

    def _update_buttons(self) -> None:
        set_buttons_enabled(
            has_selection=self._selected_registro() is not None,
            buttons=[self.btn_ver, self.btn_editar, self.btn_eliminar],
        )

    def _on_nuevo(self) -> None:
        self._runner.call(self._pagina.controller.start_create)

    def _on_ver(self) -> None:
        registro = self._selected_registro()
        if registro is None:
            return
        self._runner.submit(self._pagina.controller.view_details(registro.get(CAMPO_ID)))

    def _on_editar(self) -> None:
        registro = self._selected_registro()
        if registro is None:
            return
        self._runner.call(self._pagina.controller.start_edit, registro)

    def _on_eliminar(self) -> None:
        registro = self._selected_registro()
        if registro is None:
            return
        if not confirm_delete(self, module_title=self._recurso.titulo, entity_label=self._recurso.singular.lower()):
            return
        self._runner.submit(self._pagina.controller.remove(registro.get(CAMPO_ID)))

    def _on_login(self) -> None:
        LOGGER.info("login_required recurso=%s", self._recurso.clave)
        self._close_dialog()
        if self._on_login_required is not None:
            self._on_login_required()
