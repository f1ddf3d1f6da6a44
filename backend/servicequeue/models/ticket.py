from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, Date, DateTime, ForeignKey, UniqueConstraint
from .authz import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QueueTicket(Base):
    """One customer's place in a service date's walk-in queue."""
    __tablename__ = 'queue_tickets'
    # Status constants
    STATUS_WAITING = 'waiting'
    STATUS_CALLED = 'called'
    STATUS_IN_SERVICE = 'in_service'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELED = 'canceled'
    STATUS_NO_SHOW = 'no_show'
    ALL_STATUSES = (STATUS_WAITING, STATUS_CALLED, STATUS_IN_SERVICE, STATUS_COMPLETED, STATUS_CANCELED, STATUS_NO_SHOW)
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELED, STATUS_NO_SHOW)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    queue_number: Mapped[int] = mapped_column(Integer, nullable=False)
    vehicle_id: Mapped[int] = mapped_column(Integer, ForeignKey('vehicles.id'), nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    service_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    service_type: Mapped[str] = mapped_column(String(100), nullable=False)
    estimated_time: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # minutes
    status: Mapped[str] = mapped_column(String(30), nullable=False, default=STATUS_WAITING, index=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default='')
    called_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    service_start_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    service_end_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    # Soft removal marker; removed rows stay visible to queue number allocation only.
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)

    __table_args__ = (UniqueConstraint('service_date', 'queue_number', name='uq_ticket_date_queue_number'),)

# Status flow: waiting -> called -> in_service -> completed
# called -> no_show; waiting/called/in_service -> canceled
