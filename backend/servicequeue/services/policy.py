from __future__ import annotations
from typing import Optional, Set
from flask_jwt_extended import get_jwt, get_jwt_identity
from servicequeue.errors import ValidationError


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    if '*' in perms:
        return True
    return all(c in perms for c in codes)


def current_user_id() -> int:
    """Numeric JWT subject; tokens carry it as a string."""
    ident: Optional[str] = get_jwt_identity()
    try:
        return int(ident)
    except (TypeError, ValueError):
        raise ValidationError('token subject must be a user id')


def is_owner_or(owner_user_id: int, *codes: str) -> bool:
    """Caller owns the record, or holds every code in ``codes``."""
    return current_user_id() == owner_user_id or (bool(codes) and has_permissions(*codes))
