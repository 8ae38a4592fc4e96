"""
Background Runner - fire-and-forget execution of named jobs

Jobs are plain functions registered by name in qrtrack.tasks. A request hands
a job name plus JSON-serializable kwargs to the runner and returns its
response immediately; the job runs later in its own app context.

Backends (BACKGROUND_BACKEND):
    thread  - process-wide ThreadPoolExecutor (default)
    celery  - qrtrack.tasks.run_background_job via the Redis broker
    inline  - run synchronously in the caller (diagnostics / tests)

Jobs are never cancelled because the request that submitted them finished.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait

from flask import current_app

logger = logging.getLogger(__name__)


class BackgroundRunner:
    """Flask extension owning the background thread pool."""

    def __init__(self, app=None):
        self._executor = None
        self._max_workers = 8
        self._futures = set()
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._max_workers = app.config.get("BACKGROUND_MAX_WORKERS", 8)
        app.extensions["background"] = self

    def _get_executor(self):
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="qrtrack-bg",
                )
            return self._executor

    def submit(self, job_name, **kwargs):
        """
        Schedule a named job and return without waiting for it.

        Returns the Future for the thread backend, None otherwise.
        """
        app = current_app._get_current_object()
        backend = app.config.get("BACKGROUND_BACKEND", "thread")

        if backend == "celery":
            from qrtrack.tasks import run_background_job
            run_background_job.delay(job_name, kwargs)
            return None

        if backend == "inline":
            self._run(app, job_name, kwargs)
            return None

        future = self._get_executor().submit(self._run, app, job_name, kwargs)
        with self._lock:
            self._futures.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future):
        with self._lock:
            self._futures.discard(future)

    @staticmethod
    def _run(app, job_name, kwargs):
        from qrtrack.tasks import run_job

        with app.app_context():
            run_job(job_name, kwargs)

    def pending(self):
        with self._lock:
            return len(self._futures)

    def drain(self, timeout=None):
        """Wait for in-flight thread jobs, including jobs they spawn. Returns True when idle."""
        while True:
            with self._lock:
                futures = set(self._futures)
            if not futures:
                return True
            done, not_done = wait(futures, timeout=timeout)
            if not_done:
                logger.warning("Background drain timed out with %d job(s) running", len(not_done))
                return False

    def shutdown(self, wait_for_jobs=True):
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait_for_jobs)
