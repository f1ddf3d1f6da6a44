from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Float, Boolean, DateTime, ForeignKey
from .authz import Base
from .ticket import utcnow


class MaintenanceItem(Base):
    __tablename__ = 'maintenance_items'
    STATUS_PENDING = 'pending'      # requested by customer at booking
    STATUS_INSPECTED = 'inspected'  # found by mechanic, awaiting customer decision
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_COMPLETED = 'completed'
    STATUS_SKIPPED = 'skipped'
    ALL_STATUSES = (STATUS_PENDING, STATUS_INSPECTED, STATUS_APPROVED, STATUS_REJECTED, STATUS_COMPLETED, STATUS_SKIPPED)
    # Excluded from cost totals
    UNBILLED_STATUSES = (STATUS_REJECTED, STATUS_SKIPPED)

    TYPE_INITIAL = 'initial'
    TYPE_DISCOVERED = 'discovered'
    ALL_TYPES = (TYPE_INITIAL, TYPE_DISCOVERED)

    PRIORITIES = ('urgent', 'high', 'normal', 'low')

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(Integer, ForeignKey('queue_tickets.id'), nullable=False, index=True)
    mechanic_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey('users.id'), nullable=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False, default=TYPE_INITIAL)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=STATUS_PENDING, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default='')
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default='normal')
    estimated_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    actual_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    labor_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default='')
    inspected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    mechanic = relationship('User', foreign_keys=[mechanic_id])
