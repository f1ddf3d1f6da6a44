from __future__ import annotations
"""Typed access to the key/value settings table.

Lookups hit the store on every call (no caching). Typed getters never raise:
a missing key, an unparseable value or a failed read yields the caller's
default, which keeps the queue usable before the table is seeded.
"""
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from servicequeue.constants import settings as keys
from servicequeue.errors import NotFoundError, ValidationError
from servicequeue.models.setting import Setting

logger = logging.getLogger(__name__)

_TRUE = {'1', 't', 'true'}
_FALSE = {'0', 'f', 'false'}


def parse_bool(raw: str) -> bool:
    val = raw.strip().lower()
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    raise ValueError(f'invalid boolean {raw!r}')


def coerce_value(raw: str, type_: str) -> Any:
    """Parse ``raw`` according to a setting type; raises ValueError on mismatch."""
    if type_ == Setting.TYPE_INT:
        return int(raw)
    if type_ == Setting.TYPE_FLOAT:
        return float(raw)
    if type_ == Setting.TYPE_BOOL:
        return parse_bool(raw)
    if type_ == Setting.TYPE_STRING:
        return raw
    raise ValueError(f'unknown setting type {type_!r}')


class SettingsProvider:
    def __init__(self, session: Session):
        self.session = session

    # ---- raw access ----
    def get_setting(self, key: str) -> Optional[Setting]:
        return self.session.execute(select(Setting).where(Setting.key == key)).scalar_one_or_none()

    def _lookup(self, key: str) -> Optional[str]:
        try:
            setting = self.get_setting(key)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Setting lookup failed for %s, using default: %s", key, exc)
            return None
        return setting.value if setting else None

    # ---- typed accessors ----
    def get_int(self, key: str, default: int) -> int:
        raw = self._lookup(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            return default

    def get_float(self, key: str, default: float) -> float:
        raw = self._lookup(key)
        if raw is None:
            return default
        try:
            return float(raw)
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool) -> bool:
        raw = self._lookup(key)
        if raw is None:
            return default
        try:
            return parse_bool(raw)
        except ValueError:
            return default

    def get_string(self, key: str, default: str) -> str:
        raw = self._lookup(key)
        return default if raw is None else raw

    # ---- waiting list helpers ----
    def max_tickets_per_day(self) -> int:
        return self.get_int(keys.MAX_TICKETS_PER_DAY, keys.DEFAULT_MAX_TICKETS_PER_DAY)

    def cleanup_retention_days(self) -> int:
        return self.get_int(keys.CLEANUP_RETENTION_DAYS, keys.DEFAULT_CLEANUP_RETENTION_DAYS)

    def is_cleanup_job_enabled(self) -> bool:
        return self.get_bool(keys.JOB_ENABLED, keys.DEFAULT_JOB_ENABLED)

    def job_schedule(self) -> str:
        return self.get_string(keys.JOB_SCHEDULE, keys.DEFAULT_JOB_SCHEDULE)

    # ---- management ----
    def list_all(self) -> List[Setting]:
        return list(self.session.execute(select(Setting).order_by(Setting.category, Setting.key)).scalars())

    def list_public(self) -> List[Setting]:
        q = select(Setting).where(Setting.is_public.is_(True)).order_by(Setting.category, Setting.key)
        return list(self.session.execute(q).scalars())

    def list_by_category(self, category: str) -> List[Setting]:
        q = select(Setting).where(Setting.category == category).order_by(Setting.key)
        return list(self.session.execute(q).scalars())

    def require(self, key: str) -> Setting:
        setting = self.get_setting(key)
        if not setting:
            raise NotFoundError('setting not found')
        return setting

    def update_setting(self, key: str, value: Any) -> Setting:
        setting = self.require(key)
        if not setting.is_editable:
            raise ValidationError('this setting cannot be edited')
        raw = _stringify(value)
        _validate(raw, setting.type)
        setting.value = raw
        self.session.commit()
        return setting

    def create_setting(self, data: Dict[str, Any]) -> Setting:
        key = data.get('key')
        type_ = data.get('type')
        if not key or data.get('value') is None or not type_:
            raise ValidationError('key, value, type required')
        if type_ not in Setting.ALL_TYPES:
            raise ValidationError(f'type must be one of {", ".join(Setting.ALL_TYPES)}')
        if self.get_setting(key):
            raise ValidationError('setting with this key already exists')
        raw = _stringify(data['value'])
        _validate(raw, type_)
        setting = Setting(
            key=key,
            value=raw,
            type=type_,
            description=data.get('description') or '',
            category=data.get('category') or 'general',
            is_editable=bool(data.get('is_editable', True)),
            is_public=bool(data.get('is_public', False)),
        )
        self.session.add(setting)
        self.session.commit()
        return setting

    def delete_setting(self, setting_id: int) -> None:
        setting = self.session.get(Setting, setting_id)
        if not setting:
            raise NotFoundError('setting not found')
        self.session.delete(setting)
        self.session.commit()

    def seed_defaults(self) -> int:
        """Insert any missing default settings; existing values are left untouched."""
        existing = {s.key for s in self.session.execute(select(Setting)).scalars()}
        created = 0
        for spec in keys.DEFAULT_SETTINGS:
            if spec['key'] in existing:
                continue
            self.session.add(Setting(**spec))
            created += 1
        self.session.commit()
        return created


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def _validate(raw: str, type_: str) -> None:
    try:
        coerce_value(raw, type_)
    except ValueError:
        raise ValidationError(f'value {raw!r} is not a valid {type_}')


__all__ = ['SettingsProvider', 'parse_bool', 'coerce_value']
