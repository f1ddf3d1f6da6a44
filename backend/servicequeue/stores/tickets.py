from __future__ import annotations
"""Persistence for queue tickets.

Soft-removed tickets (``deleted_at`` set) are hidden from every lookup except
``next_queue_number``, which must see them so numbers are never handed out twice
for the same service date.
"""
from datetime import date, datetime
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from servicequeue.models.ticket import QueueTicket, utcnow


class TicketStore:
    def __init__(self, session: Session):
        self.session = session

    def _live(self):
        return select(QueueTicket).where(QueueTicket.deleted_at.is_(None))

    def create(self, ticket: QueueTicket) -> QueueTicket:
        """Insert and commit; IntegrityError propagates after rollback."""
        self.session.add(ticket)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return ticket

    def get_by_id(self, ticket_id: int) -> Optional[QueueTicket]:
        return self.session.execute(self._live().where(QueueTicket.id == ticket_id)).scalar_one_or_none()

    def refresh(self, ticket: QueueTicket) -> QueueTicket:
        self.session.refresh(ticket)
        return ticket

    def get_by_queue_number(self, queue_number: int, service_date: date) -> Optional[QueueTicket]:
        q = self._live().where(QueueTicket.queue_number == queue_number, QueueTicket.service_date == service_date)
        return self.session.execute(q).scalar_one_or_none()

    def get_by_customer(self, customer_id: int) -> List[QueueTicket]:
        q = self._live().where(QueueTicket.customer_id == customer_id).order_by(
            QueueTicket.service_date.desc(), QueueTicket.queue_number.asc()
        )
        return list(self.session.execute(q).scalars())

    def customer_query(self, customer_id: int):
        """Legacy Query form for paginated listings."""
        return self.session.query(QueueTicket).filter(
            QueueTicket.deleted_at.is_(None), QueueTicket.customer_id == customer_id
        ).order_by(QueueTicket.service_date.desc(), QueueTicket.queue_number.asc())

    def date_query(self, service_date: date):
        return self.session.query(QueueTicket).filter(
            QueueTicket.deleted_at.is_(None), QueueTicket.service_date == service_date
        ).order_by(QueueTicket.queue_number.asc())

    def get_by_service_date(self, service_date: date) -> List[QueueTicket]:
        q = self._live().where(QueueTicket.service_date == service_date).order_by(QueueTicket.queue_number.asc())
        return list(self.session.execute(q).scalars())

    def get_by_status(self, status: str, service_date: date) -> List[QueueTicket]:
        q = self._live().where(QueueTicket.status == status, QueueTicket.service_date == service_date).order_by(
            QueueTicket.queue_number.asc()
        )
        return list(self.session.execute(q).scalars())

    def get_by_status_before(self, status: str, cutoff: date) -> List[QueueTicket]:
        """Tickets in ``status`` whose service date is strictly before ``cutoff``."""
        q = self._live().where(QueueTicket.status == status, QueueTicket.service_date < cutoff).order_by(
            QueueTicket.service_date.asc(), QueueTicket.queue_number.asc()
        )
        return list(self.session.execute(q).scalars())

    def next_queue_number(self, service_date: date) -> int:
        q = select(func.coalesce(func.max(QueueTicket.queue_number), 0)).where(QueueTicket.service_date == service_date)
        return int(self.session.execute(q).scalar_one()) + 1

    def update(self, ticket: QueueTicket) -> QueueTicket:
        """Full overwrite of the current in-memory state; last writer wins."""
        self.session.add(ticket)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return ticket

    def delete(self, ticket: QueueTicket, when: Optional[datetime] = None) -> None:
        ticket.deleted_at = when or utcnow()
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


__all__ = ['TicketStore']
