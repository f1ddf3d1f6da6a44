from __future__ import annotations
from flask import Blueprint, request
from servicequeue.decorators.auth import require_permissions
from servicequeue.decorators.audit import audit_log
from servicequeue.errors import ValidationError
from servicequeue.models.setting import Setting
from servicequeue.services.settings import SettingsProvider
from servicequeue import get_db

settings_bp = Blueprint('settings', __name__)


def _setting_json(s: Setting):
    return {
        'id': s.id,
        'key': s.key,
        'value': s.value,
        'type': s.type,
        'description': s.description,
        'category': s.category,
        'is_editable': s.is_editable,
        'is_public': s.is_public,
        'updated_at': s.updated_at.isoformat() if s.updated_at else None,
    }


@settings_bp.get('/public')
def public_settings():
    rows = SettingsProvider(get_db()).list_public()
    return {'data': [_setting_json(s) for s in rows]}


@settings_bp.get('')
@require_permissions('ADMIN.SETTINGS.MANAGE')
def list_settings():
    rows = SettingsProvider(get_db()).list_all()
    return {'data': [_setting_json(s) for s in rows]}


@settings_bp.get('/category/<category>')
@require_permissions('ADMIN.SETTINGS.MANAGE')
def settings_by_category(category: str):
    rows = SettingsProvider(get_db()).list_by_category(category)
    return {'data': [_setting_json(s) for s in rows]}


@settings_bp.get('/key/<key>')
@require_permissions('ADMIN.SETTINGS.MANAGE')
def get_setting(key: str):
    return _setting_json(SettingsProvider(get_db()).require(key))


@settings_bp.post('')
@require_permissions('ADMIN.SETTINGS.MANAGE')
@audit_log('SETTINGS.CREATE', entity='Setting', entity_id_key='id', meta_keys=['key', 'value'])
def create_setting():
    s = SettingsProvider(get_db()).create_setting(request.json or {})
    return _setting_json(s), 201


@settings_bp.put('/key/<key>')
@require_permissions('ADMIN.SETTINGS.MANAGE')
@audit_log('SETTINGS.UPDATE', entity='Setting', entity_id_key='id', meta_keys=['key', 'value'])
def update_setting(key: str):
    data = request.json or {}
    if 'value' not in data or data['value'] is None:
        raise ValidationError('value required')
    s = SettingsProvider(get_db()).update_setting(key, data['value'])
    return _setting_json(s)


@settings_bp.delete('/<int:setting_id>')
@require_permissions('ADMIN.SETTINGS.MANAGE')
@audit_log('SETTINGS.DELETE', entity='Setting', entity_id_arg='setting_id')
def delete_setting(setting_id: int):
    SettingsProvider(get_db()).delete_setting(setting_id)
    return {'deleted': True, 'id': setting_id}
