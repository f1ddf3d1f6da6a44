"""
Background job worker entrypoint.

Runs the job scheduler outside the web process:

    python -m servicequeue.worker
"""

from __future__ import annotations

import logging
import os
import threading

from servicequeue import create_app

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("worker")


def main(stop_event: threading.Event | None = None) -> None:
    # the web process must not start a second copy of the scheduler
    app = create_app({"SCHEDULER_ENABLED": False})
    scheduler = app.extensions["job_scheduler"]
    stop_event = stop_event or threading.Event()
    scheduler.start()
    logger.info("Worker started; jobs: %s", ", ".join(j["name"] for j in scheduler.list_jobs()))
    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:
        logger.info("Worker interrupted")
    finally:
        scheduler.stop()
        logger.info("Worker stopped")


if __name__ == "__main__":
    main()
