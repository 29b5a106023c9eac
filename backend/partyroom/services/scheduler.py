import logging
import time
from typing import Callable


logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellation token for one scheduled callback."""

    def __init__(self, delay: float):
        self.delay = delay
        self.deadline = time.time() + delay
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class BackgroundScheduler:
    """Run callbacks later on Socket.IO background tasks.

    - call_later() fires once after a delay unless the handle was cancelled
    - every() repeats until its handle is cancelled
    - callbacks run inside the Flask app context when an app is bound
    - a callback that raises is logged and does not kill a repeating task
    """

    def __init__(self, socketio, app=None):
        self.socketio = socketio
        self.app = app

    def call_later(self, delay: float, fn: Callable, *args) -> TimerHandle:
        handle = TimerHandle(delay)

        def _worker():
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            self._run(fn, args)

        self.socketio.start_background_task(_worker)
        return handle

    def every(self, interval: float, fn: Callable, *args) -> TimerHandle:
        handle = TimerHandle(interval)

        def _worker():
            while not handle.cancelled:
                self.socketio.sleep(interval)
                if handle.cancelled:
                    return
                handle.deadline = time.time() + interval
                self._run(fn, args)

        self.socketio.start_background_task(_worker)
        return handle

    def _run(self, fn, args) -> None:
        try:
            if self.app is not None:
                with self.app.app_context():
                    fn(*args)
            else:
                fn(*args)
        except Exception:
            logger.exception(f"[timer-error] callback {getattr(fn, '__name__', fn)} failed")
