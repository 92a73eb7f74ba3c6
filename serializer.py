import logging
import queue
import threading
from concurrent.futures import Future

logger = logging.getLogger(__name__)


class MutationSerializer:
    """FIFO exclusive-execution queue backed by a single worker thread.

    Tasks run one at a time in submission order. A task's result or
    exception goes back to its own caller only; the worker keeps going.
    """

    def __init__(self, name: str = "whitelist-mutations"):
        self._queue = queue.Queue()
        self._worker = threading.Thread(target=self._run, name=name, daemon=True)
        self._worker.start()

    def _run(self):
        while True:
            future, task, args, kwargs = self._queue.get()
            try:
                if not future.set_running_or_notify_cancel():
                    continue
                try:
                    result = task(*args, **kwargs)
                except Exception as e:
                    logger.warning("Mutation task %r failed: %s", getattr(task, "__name__", task), e)
                    future.set_exception(e)
                else:
                    future.set_result(result)
            finally:
                self._queue.task_done()

    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, task, *args, **kwargs):
        future = Future()
        self._queue.put((future, task, args, kwargs))
        return future.result()
