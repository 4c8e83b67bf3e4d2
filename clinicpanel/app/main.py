from __future__ import annotations

import sys
import uuid

from PySide6.QtWidgets import QApplication, QDialog

from clinicpanel.app.bootstrap_logging import configure_logging, get_logger, set_run_context
from clinicpanel.app.config import load_config, log_dir, log_json_enabled
from clinicpanel.app.container import build_container
from clinicpanel.app.crash_handler import install_global_exception_hook
from clinicpanel.app.domain.exceptions import ValidationError
from clinicpanel.app.ui.async_runner import AsyncRunner
from clinicpanel.app.ui.main_window import MainWindow
from clinicpanel.app.ui.sesion_dialog import SesionDialog


LOGGER = get_logger(__name__)


def main() -> int:
    try:
        configure_logging("clinicpanel-ui", log_dir(), level="INFO", json=log_json_enabled())
        set_run_context(uuid.uuid4().hex[:8])
        install_global_exception_hook(LOGGER)
        config = load_config()
    except ValidationError as exc:
        print(f"Configuración inválida: {exc}", file=sys.stderr)
        return 2

    app = QApplication(sys.argv)

    container = build_container(config)
    runner = AsyncRunner()
    runner.start()

    current_window: MainWindow | None = None

    def open_authenticated_session() -> bool:
        nonlocal current_window
        if not container.sesion.token():
            login = SesionDialog(container.sesion, api_url=config.api_url)
            if login.exec() != QDialog.Accepted:
                return False

        LOGGER.info("session_opened")
        if current_window is not None:
            current_window.deleteLater()

        def _logout() -> None:
            LOGGER.info("session_logout")
            if current_window is not None:
                current_window.hide()
            if not open_authenticated_session():
                app.quit()

        # Ventana nueva por sesión: los controladores arrancan sin estado previo.
        current_window = MainWindow(container, runner, on_logout=_logout)
        current_window.show()
        return True

    try:
        if not open_authenticated_session():
            return 0
        return app.exec()
    finally:
        runner.stop(container.close())


if __name__ == "__main__":
    raise SystemExit(main())
