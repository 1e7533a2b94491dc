"""
Detached Task Dispatch Module
Runs remote-store calls off the sample loop so a slow or failing network
never delays the next sample
"""

import queue
import threading
import traceback


def _run_task(fn, args, kwargs):
    try:
        fn(*args, **kwargs)
    except Exception as e:
        name = getattr(fn, "__name__", repr(fn))
        print(f"[DISPATCH] Task {name} failed: {e}")
        traceback.print_exc()


class BackgroundDispatcher:
    """
    Fire-and-forget task queue drained by a single daemon worker thread.

    submit() only enqueues, so callers never wait on the task. Tasks are not
    cancelled on shutdown; join() lets a caller wait for the queue to drain.
    """

    def __init__(self, name="remote-dispatch"):
        self.name = name
        self._tasks = queue.Queue()  # Thread-safe task buffer
        self._worker = None
        self._lock = threading.Lock()

    def _ensure_worker(self):
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(target=self._loop, name=self.name, daemon=True)
                self._worker.start()

    def _loop(self):
        while True:
            fn, args, kwargs = self._tasks.get()
            try:
                _run_task(fn, args, kwargs)
            finally:
                self._tasks.task_done()

    def submit(self, fn, *args, **kwargs):
        self._ensure_worker()
        self._tasks.put((fn, args, kwargs))

    def join(self):
        """Block until every submitted task has finished (shutdown and tests)."""
        self._tasks.join()


class InlineDispatcher:
    """Runs each task immediately on the caller's thread, same error policy."""

    def submit(self, fn, *args, **kwargs):
        _run_task(fn, args, kwargs)

    def join(self):
        pass
