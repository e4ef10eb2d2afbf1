"""Background task for blocking async validators."""

from concurrent.futures import Future
from functools import wraps
from typing import Callable, Any, Optional, Set, Tuple
from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot
import logging

logger = logging.getLogger(__name__)

# Tasks are kept alive here until their thread finishes
_running_tasks: Set['BackgroundTask'] = set()


class BackgroundTask(QThread):
    """
    Run a callable on a worker thread and report back through signals.

    Usage:
        task = BackgroundTask(target=my_func, args=(a, b))
        task.result_ready.connect(on_success)
        task.error_occurred.connect(on_error)  # Receives Exception, not str
        task.start()

        # Later:
        task.cancel()  # Safe cancellation
    """

    result_ready = pyqtSignal(object)
    error_occurred = pyqtSignal(Exception)  # Full exception, caller decides

    def __init__(
        self,
        target: Callable[..., Any],
        args: Tuple = (),
        kwargs: Optional[dict] = None,
        parent=None
    ):
        super().__init__(parent)
        self._target = target
        self._args = args
        self._kwargs = kwargs or {}
        self.cancelled = False

    def run(self):
        """Execute target in background, respecting cancellation."""
        try:
            result = self._target(*self._args, **self._kwargs)
            if not self.cancelled:
                self.result_ready.emit(result)
        except Exception as e:
            if not self.cancelled:
                self.error_occurred.emit(e)

    def cancel(self):
        """Cancel the task; its signals are not emitted after this."""
        self.cancelled = True


class _FutureRelay(QObject):
    """
    Completes a Future from queued signals.

    Lives in the thread that started the task, so the future's done callbacks
    (and the validation they trigger) run on that thread's event loop.
    """

    def __init__(self, future: Future):
        super().__init__()
        self._future = future

    @pyqtSlot(object)
    def on_result(self, result):
        if not self._future.done():
            self._future.set_result(result)

    @pyqtSlot(Exception)
    def on_error(self, error):
        if not self._future.done():
            self._future.set_exception(error)


def run_in_background(target: Callable[..., Any], *args, **kwargs) -> Future:
    """
    Start ``target`` on a BackgroundTask and return a Future for its result.

    The future resolves when the Qt event loop of the calling thread delivers
    the task's result.
    """
    future: Future = Future()
    future.set_running_or_notify_cancel()

    relay = _FutureRelay(future)
    task = BackgroundTask(target=target, args=args, kwargs=kwargs)
    task.result_ready.connect(relay.on_result)
    task.error_occurred.connect(relay.on_error)
    task._relay = relay

    def _cleanup():
        # finished is emitted just before the thread exits
        task.wait()
        _running_tasks.discard(task)

    task.finished.connect(_cleanup)
    _running_tasks.add(task)
    task.start()
    logger.debug(f"Started background task for {getattr(target, '__name__', target)!r}")
    return future


def background_validator(predicate: Callable[[Any], bool]) -> Callable[[Any], Future]:
    """
    Wrap a blocking predicate as an async validator.

    Example:
        @background_validator
        def username_available(value):
            return api.is_available(value)  # blocking network call

        form.configure({"username": {"async_validators": {"available": username_available}}})
    """
    @wraps(predicate)
    def _validator(value: Any) -> Future:
        return run_in_background(predicate, value)

    return _validator
