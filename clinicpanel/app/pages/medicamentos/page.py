from __future__ import annotations

from typing import Callable, Optional

from PySide6.QtWidgets import QTabWidget, QVBoxLayout, QWidget

from clinicpanel.app.container import AppContainer
from clinicpanel.app.pages.recursos.page import PageRecurso
from clinicpanel.app.ui.async_runner import AsyncRunner


class PageMedicamentos(QWidget):
    """Catálogo de medicamentos y su inventario en pestañas."""

    def __init__(
        self,
        container: AppContainer,
        runner: AsyncRunner,
        *,
        on_login_required: Optional[Callable[[], None]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self.page_medicamentos = PageRecurso(container, "medicamentos", runner, on_login_required=on_login_required)
        self.page_inventario = PageRecurso(container, "inventario", runner, on_login_required=on_login_required)

        self.tabs = QTabWidget()
        self.tabs.addTab(self.page_medicamentos, "Medicamentos")
        self.tabs.addTab(self.page_inventario, "Inventario")
        self.tabs.currentChanged.connect(self._on_tab_changed)

        layout = QVBoxLayout(self)
        layout.addWidget(self.tabs)

    def on_show(self) -> None:
        self._current().on_show()

    def on_hide(self) -> None:
        self._current().on_hide()

    def _current(self) -> PageRecurso:
        widget = self.tabs.currentWidget()
        return widget if isinstance(widget, PageRecurso) else self.page_medicamentos

    def _on_tab_changed(self, _index: int) -> None:
        self._current().on_show()

    def dispose(self) -> None:
        self.page_medicamentos.dispose()
        self.page_inventario.dispose()
