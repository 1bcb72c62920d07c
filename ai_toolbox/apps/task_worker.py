import logging

from PyQt6.QtCore import QObject, QRunnable, QThreadPool, pyqtSignal

from ai_toolbox.core.errors import ToolboxError


class TaskSignals(QObject):
    finished = pyqtSignal(object)  # result
    failed = pyqtSignal(object)    # exception


class EngineTask(QRunnable):
    """Runs one store / file operation off the GUI thread."""
    def __init__(self, fn, args, kwargs):
        super().__init__()
        self.fn = fn
        self.args = args
        self.kwargs = kwargs
        self.signals = TaskSignals()

    def run(self):
        try:
            result = self.fn(*self.args, **self.kwargs)
        except ToolboxError as e:
            logging.getLogger("EngineTask").error(f"{getattr(self.fn, '__name__', 'task')} failed: {e}")
            self.signals.failed.emit(e)
            return
        except Exception as e:
            logging.getLogger("EngineTask").error("Unexpected error in background task", exc_info=True)
            self.signals.failed.emit(e)
            return
        self.signals.finished.emit(result)


class TaskRunner(QObject):
    """
    Single-lane background executor. Results come back to the GUI thread through
    queued signals; tasks run one at a time in submission order.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.logger = logging.getLogger("TaskRunner")
        self.pool = QThreadPool(self)
        self.pool.setMaxThreadCount(1)
        self._active = set()

    def submit(self, fn, *args, on_done=None, on_error=None, **kwargs) -> EngineTask:
        task = EngineTask(fn, args, kwargs)
        if on_done is not None:
            task.signals.finished.connect(on_done)
        if on_error is not None:
            task.signals.failed.connect(on_error)
        # Keep the Python wrapper alive until the task reports back
        task.signals.finished.connect(lambda _result, t=task: self._active.discard(t))
        task.signals.failed.connect(lambda _error, t=task: self._active.discard(t))
        self._active.add(task)
        self.pool.start(task)
        return task

    def wait_for_done(self, msecs: int = 5000) -> bool:
        return self.pool.waitForDone(msecs)
