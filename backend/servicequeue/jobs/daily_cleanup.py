from __future__ import annotations
"""Daily waiting list maintenance.

Each run, unless disabled through settings:

1. soft-removes completed, canceled and no-show tickets whose service date is
   older than the retention window;
2. re-applies the daily cap to today's queue, canceling the surplus waiting
   tickets with the highest queue numbers so earlier arrivals keep their place.

A second run with no intervening changes is a no-op.
"""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from servicequeue.models.ticket import QueueTicket
from servicequeue.services.settings import SettingsProvider
from servicequeue.stores.tickets import TicketStore

logger = logging.getLogger(__name__)

JOB_NAME = 'DailyWaitingListCleanup'
RETAINED_STATUSES = (QueueTicket.STATUS_COMPLETED, QueueTicket.STATUS_CANCELED, QueueTicket.STATUS_NO_SHOW)


def auto_cancel_note(notes: Optional[str], cap: int) -> str:
    return f"{notes or ''} [Auto-canceled: Daily limit of {cap} tickets exceeded]"


class DailyCleanupJob:
    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def name(self) -> str:
        return JOB_NAME

    def schedule(self) -> str:
        return SettingsProvider(self.session_factory()).job_schedule()

    def run(self, today: Optional[date] = None) -> None:
        session = self.session_factory()
        settings = SettingsProvider(session)
        store = TicketStore(session)
        today = today or datetime.now(timezone.utc).date()

        logger.info("Starting daily waiting list cleanup for %s", today)
        if not settings.is_cleanup_job_enabled():
            logger.info("Daily cleanup job is disabled, skipping")
            return

        self.cleanup_old_entries(store, settings, today)
        self.enforce_daily_limit(store, settings, today)
        logger.info("Daily waiting list cleanup completed")

    def cleanup_old_entries(self, store: TicketStore, settings: SettingsProvider, today: date) -> int:
        retention = settings.cleanup_retention_days()
        cutoff = today - timedelta(days=retention)
        logger.info("Cleaning up entries older than %s (retention: %s days)", cutoff, retention)
        cleaned = 0
        for status in RETAINED_STATUSES:
            try:
                entries = store.get_by_status_before(status, cutoff)
            except SQLAlchemyError:
                logger.exception("Failed to load %s entries older than %s", status, cutoff)
                raise
            for entry in entries:
                try:
                    store.delete(entry)
                except SQLAlchemyError as exc:
                    # retried on the next scheduled run
                    logger.error("Failed to remove entry %s: %s", entry.id, exc)
                    continue
                cleaned += 1
        logger.info("Cleaned up %s old entries", cleaned)
        return cleaned

    def enforce_daily_limit(self, store: TicketStore, settings: SettingsProvider, today: date) -> int:
        cap = settings.max_tickets_per_day()
        try:
            waiting = [t for t in store.get_by_service_date(today) if t.status == QueueTicket.STATUS_WAITING]
        except SQLAlchemyError:
            logger.exception("Failed to load today's queue (%s)", today)
            raise
        waiting.sort(key=lambda t: t.queue_number)
        logger.info("Today's waiting tickets: %s/%s", len(waiting), cap)
        if len(waiting) <= cap:
            logger.info("Waiting list is within daily limit")
            return 0

        excess = waiting[cap:]
        logger.warning("Waiting list exceeds daily limit by %s tickets, canceling excess", len(excess))
        canceled = 0
        for ticket in reversed(excess):
            # tickets kept earlier may have left waiting since the snapshot
            try:
                live = len(store.get_by_status(QueueTicket.STATUS_WAITING, today))
            except SQLAlchemyError:
                logger.exception("Failed to recount waiting tickets for %s", today)
                raise
            if live <= cap:
                logger.info("Waiting list back within daily limit (%s/%s), stopping", live, cap)
                break
            try:
                store.refresh(ticket)
                if ticket.deleted_at is not None or ticket.status != QueueTicket.STATUS_WAITING:
                    logger.info("Ticket %s is no longer waiting, leaving it", ticket.id)
                    continue
                ticket.status = QueueTicket.STATUS_CANCELED
                ticket.notes = auto_cancel_note(ticket.notes, cap)
                store.update(ticket)
            except SQLAlchemyError as exc:
                logger.error("Failed to cancel excess ticket %s: %s", ticket.id, exc)
                continue
            canceled += 1
            logger.info("Canceled excess ticket #%s (ID: %s)", ticket.queue_number, ticket.id)
        return canceled


__all__ = ['DailyCleanupJob', 'JOB_NAME', 'auto_cancel_note']
