from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt_identity
from servicequeue import get_db
from servicequeue.models.audit import AuditLog

logger = logging.getLogger(__name__)


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[Any] = None, meta: Optional[Dict[str, Any]] = None):
    """Stage an audit entry in the current DB session.

    Parameters:
      action: short action code e.g. QUEUE.TAKE, QUEUE.CALL, MAINT.ITEMS.APPROVE
      entity: optional entity name (QueueTicket, MaintenanceItem, Setting)
      entity_id: optional primary key, stored as string
      meta: additional JSON-safe dictionary (shallow copied)
    """
    session = get_db()
    actor = None
    try:
        ident = get_jwt_identity()
        actor = int(ident) if ident is not None else None
    except (RuntimeError, TypeError, ValueError):
        actor = None  # no JWT context (scheduler jobs, CLI)
    log = AuditLog(
        actor_user_id=actor or 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
