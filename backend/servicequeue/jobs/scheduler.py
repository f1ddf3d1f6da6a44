from __future__ import annotations
"""Cron-driven runner for background jobs on APScheduler.

A job is any object exposing ``name()``, ``schedule()`` (a five-field crontab
string) and ``run()``. Triggers are built when the scheduler starts, so jobs can
be registered before the database is reachable.
"""
import logging
from datetime import timezone
from typing import Callable, Dict, List, Optional, Protocol

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from servicequeue.errors import NotFoundError

logger = logging.getLogger(__name__)


class Job(Protocol):
    def name(self) -> str: ...
    def schedule(self) -> str: ...
    def run(self) -> None: ...


class JobScheduler:
    def __init__(self, teardown: Optional[Callable[[], None]] = None):
        self.scheduler = BackgroundScheduler(timezone=timezone.utc)
        self.jobs: Dict[str, Job] = {}
        self.teardown = teardown

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def register_job(self, job: Job) -> None:
        self.jobs[job.name()] = job
        if self.running:
            self._schedule(job)
        logger.info("Registered job: %s", job.name())

    def _schedule(self, job: Job) -> None:
        expr = job.schedule()
        self.scheduler.add_job(
            func=self._execute,
            trigger=CronTrigger.from_crontab(expr, timezone=timezone.utc),
            args=[job.name()],
            id=job.name(),
            replace_existing=True,
            misfire_grace_time=300,
            coalesce=True,
        )
        logger.info("Scheduled job %s with cron '%s'", job.name(), expr)

    def _execute(self, name: str) -> None:
        """Called by APScheduler when a trigger fires; errors stay in the log."""
        job = self.jobs.get(name)
        if job is None:
            logger.error("No job registered under %s", name)
            return
        logger.info("Running job: %s", name)
        try:
            job.run()
            logger.info("Job %s completed", name)
        except Exception:
            logger.exception("Job %s failed", name)
        finally:
            if self.teardown:
                self.teardown()

    def start(self) -> None:
        if self.running:
            return
        for job in self.jobs.values():
            try:
                self._schedule(job)
            except ValueError as exc:
                logger.error("Invalid cron schedule for job %s: %s", job.name(), exc)
        logger.info("Starting job scheduler with %s job(s)", len(self.jobs))
        self.scheduler.start()

    def stop(self) -> None:
        if not self.running:
            return
        logger.info("Stopping job scheduler...")
        self.scheduler.shutdown(wait=True)

    def run_job_now(self, name: str) -> None:
        """Run a job synchronously in the caller's thread; errors propagate."""
        job = self.jobs.get(name)
        if job is None:
            raise NotFoundError(f'job {name} not found')
        logger.info("Manually running job: %s", name)
        job.run()

    def list_jobs(self) -> List[Dict[str, object]]:
        rows = []
        for name in sorted(self.jobs):
            scheduled = self.scheduler.get_job(name) if self.running else None
            next_run = scheduled.next_run_time if scheduled else None
            rows.append({
                'name': name,
                'scheduled': scheduled is not None,
                'next_run_at': next_run.isoformat() if next_run else None,
            })
        return rows


__all__ = ['JobScheduler', 'Job']
