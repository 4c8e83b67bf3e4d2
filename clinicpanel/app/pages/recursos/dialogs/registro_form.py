from __future__ import annotations

import copy
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QDoubleSpinBox,
    QFormLayout,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from clinicpanel.app.application.recursos import recetas_lineas
from clinicpanel.app.domain.estado import LookupItem, ModoDialogo
from clinicpanel.app.domain.recursos import CampoDef, RecursoDef, Registro, TipoCampo, es_borrador

_PLACEHOLDERS = {
    TipoCampo.FECHA: "AAAA-MM-DD",
    TipoCampo.HORA: "HH:MM",
    TipoCampo.EMAIL: "correo@dominio.com",
}


def _texto(valor: Any) -> str:
    return "" if valor is None else str(valor)


def _fill_combo(combo: QComboBox, items: Sequence[tuple[str, str]], actual: Any) -> None:
    """Rellena (label, data) conservando la selección actual si sigue existiendo."""
    combo.blockSignals(True)
    try:
        combo.clear()
        for label, data in items:
            combo.addItem(label, data)
        index = combo.findData(_texto(actual))
        combo.setCurrentIndex(index if index >= 0 else 0)
    finally:
        combo.blockSignals(False)


class LineasRecetaEditor(QWidget):
    """Filas {medicamento, dosis, duración} de una receta."""

    changed = Signal(object)

    def __init__(self, lineas: list[dict[str, Any]], items: Sequence[LookupItem], parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._registro: Registro = {recetas_lineas.CAMPO_LINEAS: copy.deepcopy(lineas)}
        self._items = tuple(items)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self._grid = QGridLayout()
        layout.addLayout(self._grid)
        self.btn_add = QPushButton("Agregar Medicamento")
        self.btn_add.clicked.connect(self._on_add)
        layout.addWidget(self.btn_add)
        self._render()

    def lineas(self) -> list[dict[str, Any]]:
        return recetas_lineas.lineas(self._registro)

    def set_items(self, items: Sequence[LookupItem]) -> None:
        self._items = tuple(items)
        self._render()

    def _on_add(self) -> None:
        self._apply(recetas_lineas.add_linea(self._registro))

    def _apply(self, registro: Registro) -> None:
        self._registro = registro
        self._render()
        self.changed.emit(copy.deepcopy(self.lineas()))

    def _render(self) -> None:
        while self._grid.count():
            widget = self._grid.takeAt(0).widget()
            if widget is not None:
                widget.deleteLater()
        opciones = [("", "")] + [(item.label, item.id) for item in self._items]
        for row, linea in enumerate(self.lineas()):
            combo = QComboBox()
            _fill_combo(combo, opciones, linea.get("id"))
            combo.currentIndexChanged.connect(lambda _i, r=row, c=combo: self._on_medicamento(r, c))
            dosis = QLineEdit(_texto(linea.get("dosis")))
            dosis.setPlaceholderText("Dosis")
            dosis.textEdited.connect(lambda text, r=row: self._on_campo(r, "dosis", text))
            duracion = QLineEdit(_texto(linea.get("duracion")))
            duracion.setPlaceholderText("Duración")
            duracion.textEdited.connect(lambda text, r=row: self._on_campo(r, "duracion", text))
            quitar = QPushButton("Quitar")
            quitar.clicked.connect(lambda _checked=False, r=row: self._apply(recetas_lineas.remove_linea(self._registro, r)))
            self._grid.addWidget(combo, row, 0)
            self._grid.addWidget(dosis, row, 1)
            self._grid.addWidget(duracion, row, 2)
            self._grid.addWidget(quitar, row, 3)

    def _on_medicamento(self, row: int, combo: QComboBox) -> None:
        nuevo = recetas_lineas.select_medicamento(self._registro, row, _texto(combo.currentData()), self._items)
        self._registro = nuevo
        self.changed.emit(copy.deepcopy(self.lineas()))

    def _on_campo(self, row: int, campo: str, valor: str) -> None:
        # Sin re-render: se conserva el foco del QLineEdit.
        self._registro = recetas_lineas.update_linea(self._registro, row, campo, valor)
        self.changed.emit(copy.deepcopy(self.lineas()))


class RegistroFormDialog(QDialog):
    """Formulario genérico de alta/edición/consulta construido desde ``RecursoDef``.

    No llama a la red: emite señales que la página traduce a operaciones del
    controlador (``update_field``, ``select_reference``, ``save``, ``close_dialog``).
    """

    field_changed = Signal(str, object)
    reference_selected = Signal(str, str)
    save_requested = Signal()
    close_requested = Signal()

    def __init__(
        self,
        recurso: RecursoDef,
        registro: Registro,
        modo: ModoDialogo,
        colecciones: Mapping[str, Sequence[LookupItem]] | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self._recurso = recurso
        self._registro = copy.deepcopy(registro)
        self._modo = modo
        self._colecciones: Dict[str, tuple[LookupItem, ...]] = {k: tuple(v) for k, v in (colecciones or {}).items()}
        self._combos_ref: Dict[str, QComboBox] = {}
        self._lineas: Optional[LineasRecetaEditor] = None
        self._cerrando = False

        self.setModal(True)
        self.setWindowTitle(self._titulo())
        self._build_ui()

    @property
    def registro(self) -> Registro:
        return copy.deepcopy(self._registro)

    @property
    def modo(self) -> ModoDialogo:
        return self._modo

    def set_lookups(self, colecciones: Mapping[str, Sequence[LookupItem]]) -> None:
        self._colecciones = {k: tuple(v) for k, v in colecciones.items()}
        for nombre, combo in self._combos_ref.items():
            campo = self._recurso.campo(nombre)
            _fill_combo(combo, self._opciones_referencia(campo), self._registro.get(nombre))
        if self._lineas is not None:
            campo_lista = next(c for c in self._recurso.campos if c.tipo == TipoCampo.LISTA)
            self._lineas.set_items(self._colecciones.get(campo_lista.lookup or "", ()))

    def set_error(self, mensaje: str) -> None:
        self.lbl_error.setText(mensaje)
        self.lbl_error.setVisible(bool(mensaje))

    def close_silently(self) -> None:
        self._cerrando = True
        self.done(QDialog.Accepted)

    def reject(self) -> None:
        if not self._cerrando:
            self.close_requested.emit()
        super().reject()

    def _titulo(self) -> str:
        if self._modo == ModoDialogo.VER:
            return f"Detalles de {self._recurso.singular}"
        if es_borrador(self._registro):
            return f"Nuevo {self._recurso.singular}"
        return f"Editar {self._recurso.singular}"

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        self.lbl_error = QLabel()
        self.lbl_error.setObjectName("alertaError")
        self.lbl_error.setWordWrap(True)
        self.lbl_error.setVisible(False)
        layout.addWidget(self.lbl_error)

        form = QFormLayout()
        for campo in self._recurso.campos:
            widget = self._build_campo(campo)
            if widget is not None:
                form.addRow(QLabel(campo.etiqueta), widget)
        layout.addLayout(form)

        botones = QHBoxLayout()
        botones.addStretch(1)
        if self._modo == ModoDialogo.EDITAR:
            texto = f"Crear {self._recurso.singular}" if es_borrador(self._registro) else "Guardar Cambios"
            self.btn_guardar = QPushButton(texto)
            self.btn_guardar.clicked.connect(self.save_requested.emit)
            botones.addWidget(self.btn_guardar)
        self.btn_cerrar = QPushButton("Cerrar")
        self.btn_cerrar.clicked.connect(self.reject)
        botones.addWidget(self.btn_cerrar)
        layout.addLayout(botones)

    def _build_campo(self, campo: CampoDef) -> Optional[QWidget]:
        valor = self._registro.get(campo.nombre)
        if self._modo == ModoDialogo.VER:
            return self._build_lectura(campo, valor)
        if not campo.editable:
            return None
        builder = self._builders().get(campo.tipo, self._build_linea)
        return builder(campo, valor)

    def _builders(self) -> Dict[TipoCampo, Callable[[CampoDef, Any], QWidget]]:
        return {
            TipoCampo.TEXTO_LARGO: self._build_texto_largo,
            TipoCampo.NUMERO: self._build_numero,
            TipoCampo.ENUM: self._build_opciones,
            TipoCampo.OPCION: self._build_opciones,
            TipoCampo.REFERENCIA: self._build_referencia,
            TipoCampo.LISTA: self._build_lista,
        }

    def _build_lectura(self, campo: CampoDef, valor: Any) -> Optional[QWidget]:
        if campo.tipo == TipoCampo.REFERENCIA:
            # En consulta se muestra el nombre desnormalizado, no el id.
            return None
        if campo.tipo == TipoCampo.LISTA:
            filas = []
            for linea in valor or []:
                partes = (_texto(linea.get(c)) for c in ("nombre", "dosis", "duracion"))
                filas.append(" - ".join(p for p in partes if p))
            texto = "\n".join(filas)
        else:
            texto = _texto(valor)
        label = QLabel(texto)
        label.setWordWrap(True)
        label.setObjectName(f"valor_{campo.nombre}")
        return label

    def _build_linea(self, campo: CampoDef, valor: Any) -> QWidget:
        edit = QLineEdit(_texto(valor))
        edit.setObjectName(f"campo_{campo.nombre}")
        edit.setPlaceholderText(_PLACEHOLDERS.get(campo.tipo, ""))
        edit.textEdited.connect(lambda text, n=campo.nombre: self._set(n, text))
        return edit

    def _build_texto_largo(self, campo: CampoDef, valor: Any) -> QWidget:
        edit = QPlainTextEdit(_texto(valor))
        edit.setObjectName(f"campo_{campo.nombre}")
        edit.setFixedHeight(80)
        edit.textChanged.connect(lambda n=campo.nombre, e=edit: self._set(n, e.toPlainText()))
        return edit

    def _build_numero(self, campo: CampoDef, valor: Any) -> QWidget:
        spin = QDoubleSpinBox()
        spin.setObjectName(f"campo_{campo.nombre}")
        spin.setRange(0, 1_000_000_000)
        spin.setDecimals(2)
        try:
            spin.setValue(float(valor or 0))
        except (TypeError, ValueError):
            spin.setValue(0)
        spin.valueChanged.connect(lambda v, n=campo.nombre: self._set(n, int(v) if float(v).is_integer() else v))
        return spin

    def _build_opciones(self, campo: CampoDef, valor: Any) -> QWidget:
        combo = QComboBox()
        combo.setObjectName(f"campo_{campo.nombre}")
        opciones = [(o, o) for o in campo.opciones]
        if campo.tipo == TipoCampo.OPCION:
            opciones.insert(0, ("", ""))
        _fill_combo(combo, opciones, valor)
        combo.currentIndexChanged.connect(lambda _i, n=campo.nombre, c=combo: self._set(n, _texto(c.currentData())))
        return combo

    def _build_referencia(self, campo: CampoDef, valor: Any) -> QWidget:
        combo = QComboBox()
        combo.setObjectName(f"campo_{campo.nombre}")
        _fill_combo(combo, self._opciones_referencia(campo), valor)
        combo.currentIndexChanged.connect(lambda _i, c=campo, cb=combo: self._on_referencia(c, cb))
        self._combos_ref[campo.nombre] = combo
        return combo

    def _build_lista(self, campo: CampoDef, valor: Any) -> QWidget:
        editor = LineasRecetaEditor(list(valor or []), self._colecciones.get(campo.lookup or "", ()), self)
        editor.setObjectName(f"campo_{campo.nombre}")
        editor.changed.connect(lambda lineas, n=campo.nombre: self._set(n, lineas))
        self._lineas = editor
        return editor

    def _opciones_referencia(self, campo: CampoDef) -> list[tuple[str, str]]:
        items = self._colecciones.get(campo.lookup or "", ())
        return [("", "")] + [(item.label, item.id) for item in items]

    def _on_referencia(self, campo: CampoDef, combo: QComboBox) -> None:
        ref_id = _texto(combo.currentData())
        self._registro[campo.nombre] = ref_id
        if campo.campo_nombre:
            items = self._colecciones.get(campo.lookup or "", ())
            self._registro[campo.campo_nombre] = next((i.label for i in items if i.id == ref_id), "")
        self.reference_selected.emit(campo.nombre, ref_id)

    def _set(self, nombre: str, valor: Any) -> None:
        self._registro[nombre] = valor
        self.field_changed.emit(nombre, valor)
