from __future__ import annotations
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from servicequeue.models.maintenance_item import MaintenanceItem
from servicequeue.models.ticket import utcnow


class MaintenanceItemStore:
    def __init__(self, session: Session):
        self.session = session

    def _commit(self):
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def create(self, item: MaintenanceItem) -> MaintenanceItem:
        self.session.add(item)
        self._commit()
        return item

    def create_many(self, items: List[MaintenanceItem]) -> List[MaintenanceItem]:
        """Single commit: either every item is stored or none is."""
        self.session.add_all(items)
        self._commit()
        return items

    def get_by_id(self, item_id: int) -> Optional[MaintenanceItem]:
        return self.session.get(MaintenanceItem, item_id)

    def update(self, item: MaintenanceItem) -> MaintenanceItem:
        self.session.add(item)
        self._commit()
        return item

    def delete(self, item: MaintenanceItem) -> None:
        self.session.delete(item)
        self._commit()

    def _for_ticket(self, ticket_id: int):
        return select(MaintenanceItem).where(MaintenanceItem.ticket_id == ticket_id)

    def get_by_ticket(self, ticket_id: int) -> List[MaintenanceItem]:
        q = self._for_ticket(ticket_id).order_by(MaintenanceItem.created_at.asc(), MaintenanceItem.id.asc())
        return list(self.session.execute(q).scalars())

    def get_by_status(self, ticket_id: int, status: str) -> List[MaintenanceItem]:
        q = self._for_ticket(ticket_id).where(MaintenanceItem.status == status).order_by(MaintenanceItem.id.asc())
        return list(self.session.execute(q).scalars())

    def get_by_type(self, ticket_id: int, item_type: str) -> List[MaintenanceItem]:
        q = self._for_ticket(ticket_id).where(MaintenanceItem.item_type == item_type).order_by(MaintenanceItem.id.asc())
        return list(self.session.execute(q).scalars())

    def get_initial_items(self, ticket_id: int) -> List[MaintenanceItem]:
        return self.get_by_type(ticket_id, MaintenanceItem.TYPE_INITIAL)

    def get_discovered_items(self, ticket_id: int) -> List[MaintenanceItem]:
        return self.get_by_type(ticket_id, MaintenanceItem.TYPE_DISCOVERED)

    def get_pending_approval(self, ticket_id: int) -> List[MaintenanceItem]:
        q = self._for_ticket(ticket_id).where(
            MaintenanceItem.requires_approval.is_(True),
            MaintenanceItem.status == MaintenanceItem.STATUS_INSPECTED,
        ).order_by(MaintenanceItem.id.asc())
        return list(self.session.execute(q).scalars())

    def _decide(self, item_ids: Iterable[int], **values) -> int:
        """Move still-inspected items; commits only if every id matched, else rolls back.

        Returns the number of rows the UPDATE matched.
        """
        ids = list(item_ids)
        result = self.session.execute(
            update(MaintenanceItem)
            .where(MaintenanceItem.id.in_(ids), MaintenanceItem.status == MaintenanceItem.STATUS_INSPECTED)
            .values(**values)
        )
        if result.rowcount != len(ids):
            self.session.rollback()
            return result.rowcount
        self._commit()
        return result.rowcount

    def approve_items(self, item_ids: Iterable[int]) -> int:
        now = utcnow()
        return self._decide(item_ids, status=MaintenanceItem.STATUS_APPROVED, approved_at=now, updated_at=now)

    def reject_items(self, item_ids: Iterable[int]) -> int:
        return self._decide(item_ids, status=MaintenanceItem.STATUS_REJECTED, updated_at=utcnow())

    def total_cost(self, ticket_id: int) -> Tuple[float, float]:
        """(estimated, actual) summed over items that are neither rejected nor skipped."""
        q = select(
            func.coalesce(func.sum(MaintenanceItem.estimated_cost), 0.0),
            func.coalesce(func.sum(MaintenanceItem.actual_cost), 0.0),
        ).where(
            MaintenanceItem.ticket_id == ticket_id,
            MaintenanceItem.status.not_in(MaintenanceItem.UNBILLED_STATUSES),
        )
        estimated, actual = self.session.execute(q).one()
        return float(estimated), float(actual)

    def count_by_status(self, ticket_id: int) -> Dict[str, int]:
        q = select(MaintenanceItem.status, func.count(MaintenanceItem.id)).where(
            MaintenanceItem.ticket_id == ticket_id
        ).group_by(MaintenanceItem.status)
        return {status: int(count) for status, count in self.session.execute(q).all()}


__all__ = ['MaintenanceItemStore']
