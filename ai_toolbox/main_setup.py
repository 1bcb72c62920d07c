import sys
import os
import logging
from datetime import datetime

from rich.logging import RichHandler
from rich.traceback import install

from ai_toolbox.core.profiles.core_paths import get_log_dir
from ai_toolbox.core.version import VERSION_STRING


def setup_error_handling(level=logging.INFO):
    """Rich tracebacks + session / error log files under the app data directory."""
    # Reset handlers so our configuration wins
    root = logging.getLogger()
    for h in root.handlers[:]:
        root.removeHandler(h)

    log_dir = os.path.join(get_log_dir(), "log")
    error_dir = os.path.join(get_log_dir(), "error")
    os.makedirs(log_dir, exist_ok=True)
    os.makedirs(error_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    session_file = os.path.join(log_dir, f"session_{timestamp}.log")
    error_file = os.path.join(error_dir, f"error_{timestamp}.log")

    install(show_locals=True, width=120)

    root.setLevel(level)
    formatter = logging.Formatter('%(asctime)s | %(levelname)s | [%(name)s] %(message)s')

    # Session log
    sh = logging.FileHandler(session_file, encoding='utf-8')
    sh.setFormatter(formatter)
    sh.setLevel(level)
    root.addHandler(sh)

    # Error log
    eh = logging.FileHandler(error_file, encoding='utf-8')
    eh.setFormatter(formatter)
    eh.setLevel(logging.ERROR)
    root.addHandler(eh)

    # Console
    ch = RichHandler(rich_tracebacks=True, markup=False)
    ch.setFormatter(logging.Formatter('%(message)s'))
    ch.setLevel(level)
    root.addHandler(ch)

    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception
    logging.info(f"--- {VERSION_STRING} session started (logs: {get_log_dir()}) ---")
