from __future__ import annotations

from typing import Callable, Dict, Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QHBoxLayout,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QSizePolicy,
    QStackedWidget,
    QWidget,
)

from clinicpanel.app.container import AppContainer
from clinicpanel.app.pages.home.page import APP_TITLE
from clinicpanel.app.pages.pages_registry import get_pages
from clinicpanel.app.ui.async_runner import AsyncRunner


class MainWindow(QMainWindow):
    def __init__(
        self,
        container: AppContainer,
        runner: AsyncRunner,
        *,
        on_logout: Callable[[], None],
    ) -> None:
        super().__init__()
        self.container = container
        self._runner = runner
        self._on_logout = on_logout
        self._logging_out = False

        self.setWindowTitle(APP_TITLE)
        self.resize(1200, 800)

        root = QWidget()
        self.setCentralWidget(root)

        self._build_menu()

        layout = QHBoxLayout(root)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)

        self.sidebar = QListWidget()
        self.sidebar.setFixedWidth(240)
        self.sidebar.setSelectionMode(QListWidget.SingleSelection)

        self.stack = QStackedWidget()
        self.stack.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

        layout.addWidget(self.sidebar)
        layout.addWidget(self.stack, 1)

        self._page_index_by_key: Dict[str, int] = {}
        self._factory_by_key: Dict[str, Callable[[], QWidget]] = {}

        # Páginas se crean bajo demanda (lazy) gracias a factory/lambda.
        pages = get_pages(container, runner, navigate=self.navigate, on_login_required=self.logout)
        for p in pages:
            self._factory_by_key[p.key] = p.factory
            item = QListWidgetItem(p.title)
            item.setData(Qt.UserRole, p.key)
            self.sidebar.addItem(item)

        self.sidebar.currentRowChanged.connect(self._on_sidebar_changed)

        self.navigate("home")

    def _build_menu(self) -> None:
        menu_bar = self.menuBar()
        menu_sesion = menu_bar.addMenu("Sesión")

        self.action_logout = QAction("Cerrar Sesión", self)
        self.action_logout.triggered.connect(self.logout)

        action_exit = QAction("Salir", self)
        action_exit.triggered.connect(self.close)

        menu_sesion.addAction(self.action_logout)
        menu_sesion.addSeparator()
        menu_sesion.addAction(action_exit)

    def logout(self) -> None:
        """Borra el token y vuelve a la frontera de login (una sola vez por ventana)."""
        if self._logging_out:
            return
        self._logging_out = True
        self.container.sesion.clear()
        for index in self._page_index_by_key.values():
            widget = self.stack.widget(index)
            if hasattr(widget, "dispose"):
                widget.dispose()
        self._on_logout()

    def _ensure_page_created(self, key: str) -> Optional[int]:
        if key in self._page_index_by_key:
            return self._page_index_by_key[key]

        factory = self._factory_by_key.get(key)
        if factory is None:
            return None

        widget = factory()
        index = self.stack.addWidget(widget)
        self._page_index_by_key[key] = index
        return index

    def _call_on_hide_current(self) -> None:
        w = self.stack.currentWidget()
        if w is not None and hasattr(w, "on_hide"):
            w.on_hide()

    def _call_on_show_index(self, index: int) -> None:
        w = self.stack.widget(index)
        if w is not None and hasattr(w, "on_show"):
            w.on_show()

    def navigate(self, key: str) -> None:
        self.sidebar.blockSignals(True)
        try:
            self._call_on_hide_current()

            index = self._ensure_page_created(key)
            if index is None:
                return

            self.stack.setCurrentIndex(index)
            self._call_on_show_index(index)

            for row in range(self.sidebar.count()):
                it = self.sidebar.item(row)
                if it.data(Qt.UserRole) == key:
                    self.sidebar.setCurrentRow(row)
                    break
        finally:
            self.sidebar.blockSignals(False)

    def _on_sidebar_changed(self, row: int) -> None:
        if row < 0:
            return
        item = self.sidebar.item(row)
        self.navigate(item.data(Qt.UserRole))
