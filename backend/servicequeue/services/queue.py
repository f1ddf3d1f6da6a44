from __future__ import annotations
"""Queue lifecycle: ticket allocation, daily capacity and the status machine.

Status flow::

    waiting -> called -> in_service -> completed
    called -> no_show
    waiting | called | in_service -> canceled

Every mutation goes through ``TICKET_FSM``; timestamps for called/start/end
are stamped at the moment of the transition. Store failures surface as
StoreError carrying the operation and ticket context.
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from datetime import date, datetime, timezone
from typing import List, Optional, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from servicequeue.errors import (
    AllocationConflict, CapacityExceeded, InvalidStateTransition, NotFoundError,
    StoreError, UnauthorizedError, ValidationError,
)
from servicequeue.models.ticket import QueueTicket, utcnow
from servicequeue.services.identity import get_user_by_id, get_vehicle_by_id
from servicequeue.services.settings import SettingsProvider
from servicequeue.stores.tickets import TicketStore
from servicequeue.utils.fsm import TransitionValidator

logger = logging.getLogger(__name__)

AVERAGE_SERVICE_MINUTES = 30
MAX_ALLOCATION_ATTEMPTS = 3

ACTIVE_STATUSES = frozenset({QueueTicket.STATUS_WAITING, QueueTicket.STATUS_CALLED, QueueTicket.STATUS_IN_SERVICE})
AHEAD_STATUSES = frozenset({QueueTicket.STATUS_WAITING, QueueTicket.STATUS_CALLED})

TICKET_FSM = TransitionValidator(
    {
        QueueTicket.STATUS_WAITING: {QueueTicket.STATUS_CALLED, QueueTicket.STATUS_CANCELED},
        QueueTicket.STATUS_CALLED: {QueueTicket.STATUS_IN_SERVICE, QueueTicket.STATUS_NO_SHOW, QueueTicket.STATUS_CANCELED},
        QueueTicket.STATUS_IN_SERVICE: {QueueTicket.STATUS_COMPLETED, QueueTicket.STATUS_CANCELED},
        QueueTicket.STATUS_COMPLETED: set(),
        QueueTicket.STATUS_CANCELED: set(),
        QueueTicket.STATUS_NO_SHOW: set(),
    },
    messages={
        QueueTicket.STATUS_CALLED: 'can only call customers in waiting status',
        QueueTicket.STATUS_IN_SERVICE: 'customer must be called before starting service',
        QueueTicket.STATUS_COMPLETED: 'service must be in progress to complete',
        QueueTicket.STATUS_NO_SHOW: 'can only mark no-show for called customers',
    },
)


def consumes_capacity(status: str) -> bool:
    """True for statuses that hold one of the day's slots."""
    return status in ACTIVE_STATUSES


def progress_message(status: str, waiting_ahead: int, currently_serving: int) -> str:
    if status == QueueTicket.STATUS_WAITING:
        if waiting_ahead == 0:
            return "You're next! Please be ready to bring your vehicle to the service area."
        if currently_serving > 0:
            return f"{waiting_ahead} customer(s) ahead of you. Currently serving queue #{currently_serving}"
        return f"{waiting_ahead} customer(s) ahead of you in the queue"
    if status == QueueTicket.STATUS_CALLED:
        return "You've been called! Please proceed to the service area immediately."
    if status == QueueTicket.STATUS_IN_SERVICE:
        return "Your vehicle is currently being serviced. Please wait in the customer lounge."
    if status == QueueTicket.STATUS_COMPLETED:
        return "Your service has been completed! Thank you for choosing our service."
    if status == QueueTicket.STATUS_CANCELED:
        return "This service ticket has been canceled."
    if status == QueueTicket.STATUS_NO_SHOW:
        return "You were marked as no-show. Please contact us to reschedule your service."
    return "Status information not available"


@dataclass
class ServiceProgress:
    ticket_id: int
    queue_number: int
    service_date: date
    status: str
    currently_serving: int
    waiting_ahead: int
    estimated_wait_minutes: int
    message: str

    def to_dict(self):
        data = asdict(self)
        data['service_date'] = self.service_date.isoformat()
        return data


@contextmanager
def _store_op(operation: str, **context):
    try:
        yield
    except SQLAlchemyError as exc:
        ctx = ', '.join(f'{k}={v}' for k, v in context.items())
        logger.error("Store failure during %s (%s): %s", operation, ctx, exc)
        raise StoreError(f'failed to {operation}' + (f' ({ctx})' if ctx else '')) from exc


class QueueLifecycleManager:
    def __init__(self, session: Session, settings: Optional[SettingsProvider] = None):
        self.session = session
        self.tickets = TicketStore(session)
        self.settings = settings or SettingsProvider(session)

    # ---- allocation ----
    def take_queue_number(self, customer_id: int, vehicle_id: int, service_date: date, service_type: str,
                          estimated_time: int = 0, notes: str = '') -> QueueTicket:
        if not service_type:
            raise ValidationError('service_type required')
        get_vehicle_by_id(self.session, vehicle_id)
        get_user_by_id(self.session, customer_id, label='customer')

        for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
            cap = self.settings.max_tickets_per_day()
            with _store_op('check availability', service_date=service_date):
                available, _remaining = self._availability(service_date, cap)
            if not available:
                raise CapacityExceeded(
                    f'daily ticket limit reached: maximum {cap} tickets per day (0 remaining)',
                    max_tickets=cap,
                )
            with _store_op('allocate queue number', service_date=service_date):
                number = self.tickets.next_queue_number(service_date)
            if number > cap:
                raise CapacityExceeded(
                    f'cannot create ticket: queue number {number} exceeds daily limit of {cap} tickets',
                    max_tickets=cap,
                )
            ticket = QueueTicket(
                queue_number=number,
                vehicle_id=vehicle_id,
                customer_id=customer_id,
                service_date=service_date,
                service_type=service_type,
                estimated_time=estimated_time or 0,
                status=QueueTicket.STATUS_WAITING,
                notes=notes or '',
            )
            try:
                self.tickets.create(ticket)
            except IntegrityError:
                logger.warning("Queue number %s for %s already taken (attempt %s/%s)",
                               number, service_date, attempt, MAX_ALLOCATION_ATTEMPTS)
                continue
            except SQLAlchemyError as exc:
                logger.error("Store failure creating ticket for customer %s: %s", customer_id, exc)
                raise StoreError(f'failed to create ticket (customer_id={customer_id})') from exc
            logger.info("Ticket %s issued queue number %s for %s", ticket.id, number, service_date)
            return ticket
        raise AllocationConflict(f'could not allocate a queue number for {service_date.isoformat()}, try again')

    def _availability(self, service_date: date, cap: int) -> Tuple[bool, int]:
        active = sum(1 for t in self.tickets.get_by_service_date(service_date) if consumes_capacity(t.status))
        return active < cap, max(cap - active, 0)

    def check_ticket_availability(self, service_date: date) -> Tuple[bool, int]:
        """(available, remaining) for the date under the current cap."""
        cap = self.settings.max_tickets_per_day()
        with _store_op('check availability', service_date=service_date):
            return self._availability(service_date, cap)

    # ---- transitions ----
    def _transition(self, ticket_id: int, target: str, stamp: Optional[str] = None) -> QueueTicket:
        ticket = self.get_ticket(ticket_id)
        TICKET_FSM.assert_can_transition(ticket.status, target)
        ticket.status = target
        if stamp:
            setattr(ticket, stamp, utcnow())
        with _store_op(f'update ticket to {target}', ticket_id=ticket_id):
            self.tickets.update(ticket)
        logger.info("Ticket %s (queue #%s) -> %s", ticket.id, ticket.queue_number, target)
        return ticket

    def call_customer(self, ticket_id: int) -> QueueTicket:
        return self._transition(ticket_id, QueueTicket.STATUS_CALLED, 'called_at')

    def start_service(self, ticket_id: int) -> QueueTicket:
        return self._transition(ticket_id, QueueTicket.STATUS_IN_SERVICE, 'service_start_at')

    def complete_service(self, ticket_id: int) -> QueueTicket:
        return self._transition(ticket_id, QueueTicket.STATUS_COMPLETED, 'service_end_at')

    def mark_no_show(self, ticket_id: int) -> QueueTicket:
        return self._transition(ticket_id, QueueTicket.STATUS_NO_SHOW)

    def cancel_queue(self, ticket_id: int) -> QueueTicket:
        ticket = self.get_ticket(ticket_id)
        if ticket.status == QueueTicket.STATUS_COMPLETED:
            raise InvalidStateTransition('cannot cancel completed service')
        return self._transition(ticket_id, QueueTicket.STATUS_CANCELED)

    # ---- queries ----
    def get_ticket(self, ticket_id: int) -> QueueTicket:
        with _store_op('load ticket', ticket_id=ticket_id):
            ticket = self.tickets.get_by_id(ticket_id)
        if not ticket:
            raise NotFoundError('ticket not found')
        return ticket

    def get_by_queue_number(self, queue_number: int, service_date: date) -> QueueTicket:
        with _store_op('load ticket', queue_number=queue_number, service_date=service_date):
            ticket = self.tickets.get_by_queue_number(queue_number, service_date)
        if not ticket:
            raise NotFoundError('ticket not found')
        return ticket

    def get_customer_tickets(self, customer_id: int) -> List[QueueTicket]:
        with _store_op('list customer tickets', customer_id=customer_id):
            return self.tickets.get_by_customer(customer_id)

    def get_queue_by_date(self, service_date: date) -> List[QueueTicket]:
        with _store_op('list queue', service_date=service_date):
            return self.tickets.get_by_service_date(service_date)

    def get_today_queue(self, today: Optional[date] = None) -> List[QueueTicket]:
        return self.get_queue_by_date(today or datetime.now(timezone.utc).date())

    def get_waiting_count(self, service_date: date) -> int:
        with _store_op('count waiting', service_date=service_date):
            return len(self.tickets.get_by_status(QueueTicket.STATUS_WAITING, service_date))

    def service_progress(self, ticket_id: int, customer_id: Optional[int] = None) -> ServiceProgress:
        ticket = self.get_ticket(ticket_id)
        if customer_id is not None and ticket.customer_id != customer_id:
            raise UnauthorizedError('unauthorized: not your ticket')
        same_day = self.get_queue_by_date(ticket.service_date)
        currently_serving = next(
            (t.queue_number for t in same_day if t.status == QueueTicket.STATUS_IN_SERVICE), 0
        )
        waiting_ahead = sum(
            1 for t in same_day if t.queue_number < ticket.queue_number and t.status in AHEAD_STATUSES
        )
        wait = waiting_ahead * AVERAGE_SERVICE_MINUTES
        if ticket.status in (QueueTicket.STATUS_IN_SERVICE, QueueTicket.STATUS_COMPLETED):
            wait = 0
        return ServiceProgress(
            ticket_id=ticket.id,
            queue_number=ticket.queue_number,
            service_date=ticket.service_date,
            status=ticket.status,
            currently_serving=currently_serving,
            waiting_ahead=waiting_ahead,
            estimated_wait_minutes=wait,
            message=progress_message(ticket.status, waiting_ahead, currently_serving),
        )


__all__ = [
    'QueueLifecycleManager', 'ServiceProgress', 'TICKET_FSM', 'consumes_capacity', 'progress_message',
    'ACTIVE_STATUSES',
]
