"""
Bounded worker pool over per-host jobs
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional

from ...core.constants import DEFAULT_CONCURRENCY
from ...core.interfaces import JobRunner
from ...core.logging import get_logger
from .models import Job


class Dispatcher:
    """
    Runs jobs on at most `concurrency` worker threads.

    All jobs are queued up front; each is attempted exactly once and
    dispatch() returns only after every one has finished. A failing job
    never affects the others.
    """

    def __init__(
        self,
        runner: JobRunner,
        concurrency: int = DEFAULT_CONCURRENCY,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize dispatcher.

        Args:
            runner: Per-host pipeline
            concurrency: Worker pool size
            logger: Logger instance

        Raises:
            ValueError: If concurrency is below 1
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.runner = runner
        self.concurrency = concurrency
        self.logger = logger or get_logger(__name__)

    def dispatch(self, jobs: List[Job]) -> List[Job]:
        """
        Run all jobs and wait for the pool to drain.

        Args:
            jobs: Jobs to run

        Returns:
            The same jobs, each finished (closed or failed)
        """
        if not jobs:
            return jobs

        workers = min(self.concurrency, len(jobs))
        self.logger.debug("Dispatching %d jobs on %d workers", len(jobs), workers)

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sshmux-worker") as executor:
            futures = {executor.submit(self._run, job): job for job in jobs}
            for future in as_completed(futures):
                future.result()

        failed = sum(1 for job in jobs if job.failed)
        self.logger.debug("All jobs finished, %d failed", failed)
        return jobs

    def _run(self, job: Job) -> None:
        try:
            self.runner.run(job)
        except Exception as e:
            self.logger.debug("Job for %s raised", job.host, exc_info=True)
            job.fail(e)
