from __future__ import annotations
"""Maintenance item workflow attached to a queue ticket.

Initial items are requested at booking and start ``pending``. Items a mechanic
discovers while the ticket is ``in_service`` start ``inspected`` and wait for
the ticket owner to approve or reject them. Approval batches are validated in
full before any item changes.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from servicequeue.errors import (
    InvalidStateTransition, NotFoundError, StoreError, UnauthorizedError, ValidationError,
)
from servicequeue.models.maintenance_item import MaintenanceItem
from servicequeue.models.ticket import QueueTicket, utcnow
from servicequeue.models.vehicle import Vehicle
from servicequeue.services.identity import get_user_by_id
from servicequeue.stores.maintenance_items import MaintenanceItemStore
from servicequeue.stores.tickets import TicketStore
from servicequeue.utils.validation import as_number, validate_status

logger = logging.getLogger(__name__)

COMPLETABLE_STATUSES = (MaintenanceItem.STATUS_APPROVED, MaintenanceItem.STATUS_PENDING)
# only approve_items may move an item into these
DECISION_STATUSES = (MaintenanceItem.STATUS_APPROVED, MaintenanceItem.STATUS_REJECTED)
# Fields update_item accepts; everything else on the payload is ignored.
NUMERIC_FIELDS = ('estimated_cost', 'actual_cost', 'labor_hours')
TEXT_FIELDS = ('description', 'notes')


class MaintenanceApprovalManager:
    def __init__(self, session: Session):
        self.session = session
        self.items = MaintenanceItemStore(session)
        self.tickets = TicketStore(session)

    def _ticket(self, ticket_id: int, customer_id: Optional[int] = None) -> QueueTicket:
        """Load a ticket; when ``customer_id`` is given it must own the ticket."""
        ticket = self.tickets.get_by_id(ticket_id)
        if not ticket:
            raise NotFoundError('ticket not found')
        if customer_id is not None and ticket.customer_id != customer_id:
            raise UnauthorizedError('unauthorized: not your ticket')
        return ticket

    def get_item(self, item_id: int) -> MaintenanceItem:
        item = self.items.get_by_id(item_id)
        if not item:
            raise NotFoundError('maintenance item not found')
        return item

    def _save(self, item: MaintenanceItem, operation: str) -> MaintenanceItem:
        try:
            return self.items.update(item)
        except SQLAlchemyError as exc:
            logger.error("Store failure during %s (item_id=%s): %s", operation, item.id, exc)
            raise StoreError(f'failed to {operation} (item_id={item.id})') from exc

    # ---- creation ----
    def create_initial_items(self, ticket_id: int, items: Iterable[Dict[str, Any]],
                             customer_id: Optional[int] = None) -> List[MaintenanceItem]:
        self._ticket(ticket_id, customer_id)
        rows = []
        for data in items:
            if not data.get('name') or not data.get('category'):
                raise ValidationError('category, name required')
            rows.append(MaintenanceItem(
                ticket_id=ticket_id,
                item_type=MaintenanceItem.TYPE_INITIAL,
                status=MaintenanceItem.STATUS_PENDING,
                category=data['category'],
                name=data['name'],
                description=data.get('description') or '',
                priority='normal',
                estimated_cost=as_number(data.get('estimated_cost'), 'estimated_cost'),
                labor_hours=as_number(data.get('labor_hours'), 'labor_hours'),
                requires_approval=False,
                notes=data.get('notes') or '',
            ))
        if not rows:
            return []
        try:
            self.items.create_many(rows)
        except SQLAlchemyError as exc:
            logger.error("Store failure creating initial items for ticket %s: %s", ticket_id, exc)
            raise StoreError(f'failed to create initial items (ticket_id={ticket_id})') from exc
        logger.info("Created %s initial item(s) for ticket %s", len(rows), ticket_id)
        return rows

    def add_discovered_item(self, mechanic_id: int, ticket_id: int, category: str, name: str,
                            description: str = '', priority: str = 'normal', estimated_cost: float = 0.0,
                            labor_hours: float = 0.0, requires_approval: bool = True,
                            image_url: Optional[str] = None, notes: str = '') -> MaintenanceItem:
        ticket = self._ticket(ticket_id)
        if ticket.status != QueueTicket.STATUS_IN_SERVICE:
            raise InvalidStateTransition('service must be in progress to add discovered items')
        get_user_by_id(self.session, mechanic_id, label='mechanic')
        if not name or not category:
            raise ValidationError('category, name required')
        validate_status(priority, MaintenanceItem.PRIORITIES, field_name='priority')
        item = MaintenanceItem(
            ticket_id=ticket_id,
            mechanic_id=mechanic_id,
            item_type=MaintenanceItem.TYPE_DISCOVERED,
            status=MaintenanceItem.STATUS_INSPECTED,
            category=category,
            name=name,
            description=description or '',
            priority=priority,
            estimated_cost=as_number(estimated_cost, 'estimated_cost'),
            labor_hours=as_number(labor_hours, 'labor_hours'),
            requires_approval=bool(requires_approval),
            image_url=image_url,
            notes=notes or '',
            inspected_at=utcnow(),
        )
        try:
            self.items.create(item)
        except SQLAlchemyError as exc:
            logger.error("Store failure adding discovered item to ticket %s: %s", ticket_id, exc)
            raise StoreError(f'failed to add discovered item (ticket_id={ticket_id})') from exc
        logger.info("Mechanic %s discovered item %s on ticket %s", mechanic_id, item.id, ticket_id)
        return item

    # ---- approval ----
    def approve_items(self, customer_id: int, item_ids: Iterable[int], approve: bool) -> List[int]:
        """Approve or reject every item in ``item_ids``; nothing changes if any item fails validation."""
        ids = list(dict.fromkeys(item_ids or []))
        if not ids:
            raise ValidationError('item_ids required')
        owners: Dict[int, int] = {}
        for item_id in ids:
            item = self.get_item(item_id)
            if item.ticket_id not in owners:
                owners[item.ticket_id] = self._ticket(item.ticket_id).customer_id
            if owners[item.ticket_id] != customer_id:
                raise UnauthorizedError('unauthorized: not your maintenance item')
            if item.status != MaintenanceItem.STATUS_INSPECTED:
                raise InvalidStateTransition('item is not in inspected status')
        try:
            if approve:
                updated = self.items.approve_items(ids)
            else:
                updated = self.items.reject_items(ids)
        except SQLAlchemyError as exc:
            logger.error("Store failure applying approval for %s: %s", ids, exc)
            raise StoreError('failed to apply approval decision') from exc
        # bulk UPDATE bypasses identity map
        self.session.expire_all()
        if updated != len(ids):
            logger.warning("Approval for %s lost a race (%s of %s still inspected)", ids, updated, len(ids))
            raise InvalidStateTransition('item is not in inspected status')
        logger.info("Customer %s %s items %s", customer_id, 'approved' if approve else 'rejected', ids)
        return ids

    def complete_item(self, item_id: int, actual_cost: float) -> MaintenanceItem:
        item = self.get_item(item_id)
        if item.status not in COMPLETABLE_STATUSES:
            raise InvalidStateTransition('item must be approved or pending to complete')
        item.status = MaintenanceItem.STATUS_COMPLETED
        item.actual_cost = as_number(actual_cost, 'actual_cost')
        item.completed_at = utcnow()
        return self._save(item, 'complete item')

    # ---- management ----
    def update_item(self, item_id: int, changes: Dict[str, Any]) -> MaintenanceItem:
        item = self.get_item(item_id)
        if 'status' in changes and changes['status'] is not None:
            status = validate_status(changes['status'], MaintenanceItem.ALL_STATUSES)
            if status in DECISION_STATUSES and status != item.status:
                raise InvalidStateTransition('approved and rejected are set by the customer through item approval')
            item.status = status
        if 'priority' in changes and changes['priority'] is not None:
            item.priority = validate_status(changes['priority'], MaintenanceItem.PRIORITIES, field_name='priority')
        for field in NUMERIC_FIELDS:
            if field in changes and changes[field] is not None:
                setattr(item, field, as_number(changes[field], field))
        for field in TEXT_FIELDS:
            if field in changes and changes[field] is not None:
                setattr(item, field, str(changes[field]))
        return self._save(item, 'update item')

    def delete_item(self, item_id: int) -> None:
        item = self.get_item(item_id)
        try:
            self.items.delete(item)
        except SQLAlchemyError as exc:
            logger.error("Store failure deleting item %s: %s", item_id, exc)
            raise StoreError(f'failed to delete item (item_id={item_id})') from exc

    # ---- reads ----
    def get_total_cost(self, ticket_id: int) -> Tuple[float, float]:
        return self.items.total_cost(ticket_id)

    def list_items(self, ticket_id: int, customer_id: Optional[int] = None) -> Dict[str, Any]:
        self._ticket(ticket_id, customer_id)
        items = self.items.get_by_ticket(ticket_id)
        estimated, actual = self.get_total_cost(ticket_id)
        counts = self.items.count_by_status(ticket_id)
        return {
            'items': items,
            'total': len(items),
            'total_estimated': estimated,
            'total_actual': actual,
            'pending_approval': len(self.items.get_pending_approval(ticket_id)),
            'completed': counts.get(MaintenanceItem.STATUS_COMPLETED, 0),
            'counts': counts,
        }

    def inspection_summary(self, ticket_id: int, customer_id: Optional[int] = None) -> Dict[str, Any]:
        ticket = self._ticket(ticket_id, customer_id)
        initial = self.items.get_initial_items(ticket_id)
        discovered = self.items.get_discovered_items(ticket_id)
        estimated, _actual = self.get_total_cost(ticket_id)
        needs_approval = any(
            i.requires_approval and i.status == MaintenanceItem.STATUS_INSPECTED for i in discovered
        )
        vehicle = None
        v = self.session.get(Vehicle, ticket.vehicle_id)
        if v:
            vehicle = {'brand': v.brand, 'model': v.model, 'license_plate': v.license_plate}
        return {
            'ticket': ticket,
            'vehicle': vehicle,
            'initial_items': initial,
            'discovered_items': discovered,
            'total_estimated_cost': estimated,
            'requires_approval': needs_approval,
        }


__all__ = ['MaintenanceApprovalManager', 'COMPLETABLE_STATUSES']
