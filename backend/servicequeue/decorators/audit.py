from __future__ import annotations
"""Audit logging decorator for mutating route handlers.

Usage:

@audit_log('QUEUE.CALL', entity='QueueTicket', entity_id_arg='ticket_id', meta_keys=['status'])
def call_customer(ticket_id): ...

@audit_log('MAINT.ITEMS.APPROVE', entity='MaintenanceItem',
           meta_builder=lambda data, rv, args, kwargs: {'item_ids': data.get('item_ids')})
def approve_items(): ...

Parameters:
  action: audit action code
  entity: optional entity label
  entity_id_key: key in the returned JSON object whose value becomes entity_id
  entity_id_arg: view keyword argument used when entity_id_key is absent
  meta_keys: keys projected from the returned JSON into meta
  meta_builder: callable (data, rv, args, kwargs) -> meta; overrides meta_keys

Only successful responses are audited: a view that raises never reaches the
audit step. Failures while writing the entry are logged and never change the
response.
"""
import logging
from functools import wraps
from typing import Any, Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from servicequeue.services.audit import add_audit
from servicequeue import get_db

logger = logging.getLogger(__name__)


def _extract_payload(rv: Any):
    """Return the JSON-able dict from a view return value (dict, or tuple led by a dict)."""
    if isinstance(rv, tuple) and rv:
        return rv[0]
    return rv


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    meta_builder: Optional[Callable[[dict, Any, tuple, dict], dict]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            rv = fn(*args, **kwargs)
            data = _extract_payload(rv)
            if not isinstance(data, dict):
                data = {}
            entity_id = None
            if entity_id_key and entity_id_key in data:
                entity_id = data.get(entity_id_key)
            elif entity_id_arg and entity_id_arg in kwargs:
                entity_id = kwargs.get(entity_id_arg)
            if meta_builder:
                meta = meta_builder(data, rv, args, kwargs)
            elif meta_keys:
                meta = {k: data.get(k) for k in meta_keys if k in data}
            else:
                meta = None
            session = get_db()
            try:
                add_audit(action, entity, entity_id, meta)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                logger.exception("Audit write failed for %s", action)
            return rv
        return wrapper
    return outer
