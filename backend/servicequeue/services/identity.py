from __future__ import annotations
"""Existence checks against users and vehicles.

The queue only needs to know that a referenced user or vehicle exists when a
ticket or item is created; anything richer belongs to the account services.
"""
from sqlalchemy.orm import Session
from servicequeue.errors import NotFoundError
from servicequeue.models.authz import User
from servicequeue.models.vehicle import Vehicle


def get_user_by_id(session: Session, user_id: int, label: str = 'user') -> User:
    user = session.get(User, user_id) if user_id is not None else None
    if not user:
        raise NotFoundError(f'{label} not found')
    return user


def get_vehicle_by_id(session: Session, vehicle_id: int) -> Vehicle:
    vehicle = session.get(Vehicle, vehicle_id) if vehicle_id is not None else None
    if not vehicle:
        raise NotFoundError('vehicle not found')
    return vehicle
