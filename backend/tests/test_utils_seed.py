"""Test seeding utilities to reduce duplication.

These helpers centralize creation of users, permissions, vehicles, tickets and
settings so individual tests only state what differs.
"""
from datetime import date
from typing import Iterable, Dict, Optional
from servicequeue import get_db
from servicequeue.models.authz import User, Role, Permission, RolePermission, UserRole
from servicequeue.models.vehicle import Vehicle
from servicequeue.models.ticket import QueueTicket
from servicequeue.models.setting import Setting


def ensure_permissions(codes: Iterable[str]):
    """Ensure each permission code exists; return dict code->Permission."""
    session = get_db()
    out: Dict[str, Permission] = {}
    for code in codes:
        obj = session.query(Permission).filter_by(code=code).one_or_none()
        if not obj:
            if '.' not in code:
                raise ValueError(f"Permission code '{code}' missing SERVICE.ACTION pattern")
            service, action = code.split('.', 1)
            obj = Permission(code=code, service=service, action=action, description=code)
            session.add(obj); session.flush()
        out[code] = obj
    session.commit()
    return out


def ensure_user(email: str, name: Optional[str] = None, password: str = 'pw') -> User:
    session = get_db()
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(name=name or email.split('@')[0], email=email, password_hash='')
        u.set_password(password)
        session.add(u); session.commit(); session.refresh(u)
    return u


def ensure_role(name: str, perm_codes: Iterable[str] = ()) -> Role:
    session = get_db()
    role = session.query(Role).filter_by(name=name).one_or_none()
    perms = ensure_permissions(perm_codes) if perm_codes else {}
    if not role:
        role = Role(name=name, is_system=False)
        session.add(role); session.flush()
    existing_perm_ids = {rp.permission_id for rp in session.query(RolePermission).filter_by(role_id=role.id)}
    for p in perms.values():
        if p.id not in existing_perm_ids:
            session.add(RolePermission(role_id=role.id, permission_id=p.id))
    session.commit()
    return role


def ensure_user_role_assignment(user: User, role: Role):
    session = get_db()
    if not session.query(UserRole).filter_by(user_id=user.id, role_id=role.id).one_or_none():
        session.add(UserRole(user_id=user.id, role_id=role.id)); session.commit()


# ---------------- Domain helpers (Queue / Settings) ---------------- #
def ensure_vehicle(owner: User, license_plate: Optional[str] = None, brand: str = 'Toyota', model: str = 'Corolla') -> Vehicle:
    """Idempotently ensure a Vehicle exists (by plate when given)."""
    session = get_db()
    v = None
    if license_plate:
        v = session.query(Vehicle).filter_by(license_plate=license_plate).one_or_none()
    if not v:
        v = Vehicle(owner_id=owner.id, brand=brand, model=model, license_plate=license_plate)
        session.add(v); session.commit(); session.refresh(v)
    return v


def create_ticket(customer: User, vehicle: Vehicle, service_date: date, queue_number: int,
                  status: str = QueueTicket.STATUS_WAITING, notes: str = '') -> QueueTicket:
    """Insert a ticket directly (non-idempotent), bypassing allocation and capacity checks.

    Used to stage queue state for tests of the cleanup job and progress queries.
    """
    session = get_db()
    t = QueueTicket(
        queue_number=queue_number, vehicle_id=vehicle.id, customer_id=customer.id,
        service_date=service_date, service_type='Oil change', status=status, notes=notes,
    )
    session.add(t); session.commit(); session.refresh(t)
    return t


def set_setting(key: str, value: str, type_: str = Setting.TYPE_INT, is_editable: bool = True) -> Setting:
    """Upsert a setting row without going through validation."""
    session = get_db()
    s = session.query(Setting).filter_by(key=key).one_or_none()
    if not s:
        s = Setting(key=key, value=value, type=type_, category=key.split('.', 1)[0], is_editable=is_editable)
        session.add(s)
    else:
        s.value = value
        s.type = type_
        s.is_editable = is_editable
    session.commit()
    return s


__all__ = [
    'ensure_permissions', 'ensure_user', 'ensure_role', 'ensure_user_role_assignment',
    'ensure_vehicle', 'create_ticket', 'set_setting',
]
