# NOTE: setup_error_handling must run before the window modules are imported
# so rich tracebacks and the log files cover their import-time errors too.
from ai_toolbox.main_setup import setup_error_handling

import sys
import logging

from rich.console import Console
from PyQt6.QtWidgets import QApplication, QStyle, QSystemTrayIcon


def main():
    setup_error_handling()

    from ai_toolbox.apps.task_worker import TaskRunner
    from ai_toolbox.apps.toolbox_window import ToolboxWindow
    from ai_toolbox.apps.tray import TrayController
    from ai_toolbox.core.profiles.apply_engine import ApplyEngine
    from ai_toolbox.core.profiles.core_paths import get_db_path
    from ai_toolbox.core.profiles.database import DocumentStore
    from ai_toolbox.core.profiles.settings_store import SettingsStore
    from ai_toolbox.core.profiles.sync import SyncNotifier, ORIGIN_STARTUP
    from ai_toolbox.core.version import APP_NAME

    try:
        app = QApplication(sys.argv)
        app.setApplicationName(APP_NAME)
        # The tray keeps the process alive while the window is hidden
        app.setQuitOnLastWindowClosed(False)

        store = DocumentStore(get_db_path()).open()
        notifier = SyncNotifier()
        engine = ApplyEngine(store, notifier)
        imported = engine.import_all()

        runner = TaskRunner()
        settings = SettingsStore(store)
        window = ToolboxWindow(engine, settings, notifier, runner)
        icon = app.style().standardIcon(QStyle.StandardPixmap.SP_ComputerIcon)
        window.setWindowIcon(icon)

        tray = None
        if QSystemTrayIcon.isSystemTrayAvailable():
            tray = TrayController(engine, notifier, runner, icon)
            tray.show_requested.connect(window.show_and_raise)
            tray.quit_requested.connect(app.quit)
            tray.show()
            window.tray_available = True
        else:
            logging.warning("System tray is not available; closing the window quits.")

        def shutdown():
            runner.wait_for_done()
            store.close()
            logging.info("Shut down cleanly.")

        app.aboutToQuit.connect(shutdown)

        window.show()
        logging.info("Launched AI Toolbox window.")

        if imported:
            notifier.notify(ORIGIN_STARTUP)

        sys.exit(app.exec())
    except Exception:
        logging.error("Fatal error in main loop", exc_info=True)
        Console().print_exception(show_locals=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
