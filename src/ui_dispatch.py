"""
Queue of jobs for the UI-owning thread.

Any thread may post; only the UI thread runs jobs, by calling run_pending()
from its own loop. Posting never waits for the job to run.
"""

import queue
import threading
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class UIDispatchQueue:

    def __init__(self):
        self._jobs: "queue.SimpleQueue" = queue.SimpleQueue()
        self._owner: Optional[int] = None

    def bind_owner(self, thread_id: Optional[int] = None) -> None:
        """Record which thread drains the queue. Defaults to the caller."""
        self._owner = thread_id if thread_id is not None else threading.get_ident()

    def post(self, job: Callable, *args) -> None:
        """
        Schedule job(*args) on the UI thread.

        Strings passed in args are immutable, so the job keeps its own
        reference regardless of what the caller does next.
        """
        self._jobs.put((job, args))

    def run_pending(self) -> int:
        """
        Run all queued jobs on the calling thread.

        Returns:
            Number of jobs run.
        """
        if self._owner is not None and self._owner != threading.get_ident():
            logger.warning("UI: run_pending called off the ui thread")
            return 0
        count = 0
        while True:
            try:
                job, args = self._jobs.get_nowait()
            except queue.Empty:
                break
            try:
                job(*args)
            except Exception as e:
                logger.error(f"UI: job {getattr(job, '__name__', job)} failed: {e}")
            count += 1
        return count

    def pending(self) -> int:
        return self._jobs.qsize()
