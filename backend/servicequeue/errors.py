from __future__ import annotations
"""Domain error taxonomy for the queue and maintenance workflow.

Every error is a Werkzeug ``HTTPException`` so route handlers can simply let
them propagate: the application error handler renders them with the standard
``{'error': {...}}`` payload, adding the ``kind`` discriminator.
"""
from werkzeug.exceptions import HTTPException


class QueueError(HTTPException):
    code = 400
    kind = 'queue_error'

    def __init__(self, description: str | None = None):
        super().__init__(description=description)


class NotFoundError(QueueError):
    code = 404
    kind = 'not_found'


class InvalidStateTransition(QueueError):
    code = 400
    kind = 'invalid_state_transition'


class CapacityExceeded(QueueError):
    code = 409
    kind = 'capacity_exceeded'

    def __init__(self, description: str | None = None, max_tickets: int | None = None):
        super().__init__(description)
        self.max_tickets = max_tickets


class UnauthorizedError(QueueError):
    code = 403
    kind = 'unauthorized'


class ValidationError(QueueError):
    code = 400
    kind = 'validation_error'


class AllocationConflict(QueueError):
    code = 409
    kind = 'allocation_conflict'


class StoreError(QueueError):
    code = 500
    kind = 'store_error'


__all__ = [
    'QueueError', 'NotFoundError', 'InvalidStateTransition', 'CapacityExceeded',
    'UnauthorizedError', 'ValidationError', 'AllocationConflict', 'StoreError',
]
