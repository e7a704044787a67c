import logging
import os
import socket
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from shared.helpers.date_helper import local_now
from .job_lock_crud import acquire_job_lock, release_job_lock
from .scheduler_service import run_notification_sweep

logger = logging.getLogger(__name__)

JOB_NAME = "payment_notification_sweep"


class NotificationSweepRunner:
    """Runs the payment notification sweep on a fixed interval in a daemon thread.

    ``run_once()`` is what the loop calls on every tick and what the admin
    endpoint calls on demand. A call made while another run is in progress
    returns ``None`` without doing anything, and a run that fails raises. With
    ``use_db_lock`` the run also needs the ``scheduler_locks`` row, so several
    app instances never sweep at the same time.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_seconds: int = 7200,
        run_on_start: bool = True,
        max_run_seconds: Optional[int] = None,
        use_db_lock: bool = False,
        lock_ttl: timedelta = timedelta(minutes=30),
    ):
        self._session_factory = session_factory
        self._interval = interval_seconds
        self._run_on_start = run_on_start
        self._max_run_seconds = max_run_seconds
        self._use_db_lock = use_db_lock
        self._lock_ttl = lock_ttl
        self._holder = f"{socket.gethostname()}-{os.getpid()}"
        self._run_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> Optional[Dict[str, int]]:
        if not self._run_lock.acquire(blocking=False):
            logger.info("Notification sweep already running, skipped")
            return None

        try:
            db = self._session_factory()
            try:
                return self._run_with_session(db)
            finally:
                db.close()
        finally:
            self._run_lock.release()

    def start(self):
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="payment-notification-sweep",
            daemon=True,
        )
        self._thread.start()
        logger.info("Notification sweep runner started, interval %ss", self._interval)

    def stop(self, timeout: float = 30.0):
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("Notification sweep runner stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run_with_session(self, db: Session) -> Optional[Dict[str, int]]:
        if self._use_db_lock and not acquire_job_lock(
            db, JOB_NAME, self._holder, local_now(), self._lock_ttl
        ):
            logger.info("Notification sweep held by another instance, skipped")
            return None

        deadline = None
        if self._max_run_seconds:
            deadline = time.monotonic() + self._max_run_seconds

        try:
            return run_notification_sweep(db, deadline=deadline)
        finally:
            if self._use_db_lock:
                release_job_lock(db, JOB_NAME, self._holder)

    def _run_loop(self):
        if not self._run_on_start:
            self._stop_event.wait(timeout=self._interval)

        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Notification sweep run failed")
            self._stop_event.wait(timeout=self._interval)
