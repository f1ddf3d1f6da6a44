from __future__ import annotations
from flask import Blueprint, request
from servicequeue.decorators.auth import require_permissions
from servicequeue.decorators.audit import audit_log
from servicequeue.errors import ValidationError
from servicequeue.models.maintenance_item import MaintenanceItem
from servicequeue.services.maintenance import MaintenanceApprovalManager
from servicequeue.services.policy import current_user_id, has_permissions
from servicequeue.utils.validation import as_int, as_number, require_fields
from servicequeue import get_db

maint_bp = Blueprint('maintenance', __name__)


def _iso(dt):
    return dt.isoformat() if dt else None


def _item_json(i: MaintenanceItem):
    return {
        'id': i.id,
        'ticket_id': i.ticket_id,
        'mechanic_id': i.mechanic_id,
        'item_type': i.item_type,
        'status': i.status,
        'category': i.category,
        'name': i.name,
        'description': i.description,
        'priority': i.priority,
        'estimated_cost': i.estimated_cost,
        'actual_cost': i.actual_cost,
        'labor_hours': i.labor_hours,
        'requires_approval': i.requires_approval,
        'image_url': i.image_url,
        'notes': i.notes,
        'inspected_at': _iso(i.inspected_at),
        'approved_at': _iso(i.approved_at),
        'completed_at': _iso(i.completed_at),
        'created_at': _iso(i.created_at),
    }


@maint_bp.post('/tickets/<int:ticket_id>/items')
@require_permissions('MAINT.READ')
@audit_log('MAINT.ITEMS.CREATE', entity='QueueTicket', entity_id_arg='ticket_id',
           meta_builder=lambda data, rv, a, kw: {'count': len(data.get('data', []))})
def create_initial_items(ticket_id: int):
    payload = request.json or {}
    items = payload.get('items')
    if not isinstance(items, list) or not items:
        raise ValidationError('items required')
    customer_id = None if has_permissions('MAINT.MANAGE') else current_user_id()
    rows = MaintenanceApprovalManager(get_db()).create_initial_items(ticket_id, items, customer_id)
    return {'data': [_item_json(i) for i in rows]}, 201


@maint_bp.get('/tickets/<int:ticket_id>/items')
@require_permissions('MAINT.READ')
def list_items(ticket_id: int):
    customer_id = None if has_permissions('MAINT.MANAGE') else current_user_id()
    summary = MaintenanceApprovalManager(get_db()).list_items(ticket_id, customer_id)
    return {
        'data': [_item_json(i) for i in summary['items']],
        'total': summary['total'],
        'total_estimated': summary['total_estimated'],
        'total_actual': summary['total_actual'],
        'pending_approval': summary['pending_approval'],
        'completed': summary['completed'],
    }


@maint_bp.get('/tickets/<int:ticket_id>/inspection-summary')
@require_permissions('MAINT.READ')
def inspection_summary(ticket_id: int):
    # staff may view any ticket; customers only their own
    customer_id = None if has_permissions('MAINT.MANAGE') else current_user_id()
    summary = MaintenanceApprovalManager(get_db()).inspection_summary(ticket_id, customer_id)
    ticket = summary['ticket']
    return {
        'ticket_id': ticket.id,
        'queue_number': ticket.queue_number,
        'status': ticket.status,
        'vehicle': summary['vehicle'],
        'initial_items': [_item_json(i) for i in summary['initial_items']],
        'discovered_items': [_item_json(i) for i in summary['discovered_items']],
        'total_estimated_cost': summary['total_estimated_cost'],
        'requires_approval': summary['requires_approval'],
    }


@maint_bp.post('/items/approve')
@require_permissions('MAINT.APPROVE')
@audit_log('MAINT.ITEMS.APPROVE', entity='MaintenanceItem', meta_keys=['item_ids', 'approved'])
def approve_items():
    data = request.json or {}
    item_ids = data.get('item_ids')
    if not isinstance(item_ids, list):
        raise ValidationError('item_ids required')
    approve = data.get('approve', True)
    if not isinstance(approve, bool):
        raise ValidationError('approve must be a boolean')
    ids = MaintenanceApprovalManager(get_db()).approve_items(
        current_user_id(), [as_int(i, 'item_ids') for i in item_ids], approve
    )
    return {'item_ids': ids, 'approved': approve}


@maint_bp.post('/items/discovered')
@require_permissions('MAINT.MANAGE')
@audit_log('MAINT.ITEM.DISCOVER', entity='MaintenanceItem', entity_id_key='id', meta_keys=['ticket_id', 'priority'])
def add_discovered_item():
    data = request.json or {}
    require_fields(data, 'ticket_id', 'category', 'name')
    item = MaintenanceApprovalManager(get_db()).add_discovered_item(
        mechanic_id=current_user_id(),
        ticket_id=as_int(data.get('ticket_id'), 'ticket_id'),
        category=data['category'],
        name=data['name'],
        description=data.get('description') or '',
        priority=data.get('priority') or 'normal',
        estimated_cost=as_number(data.get('estimated_cost'), 'estimated_cost'),
        labor_hours=as_number(data.get('labor_hours'), 'labor_hours'),
        requires_approval=bool(data.get('requires_approval', True)),
        image_url=data.get('image_url'),
        notes=data.get('notes') or '',
    )
    return _item_json(item), 201


@maint_bp.put('/items/<int:item_id>')
@require_permissions('MAINT.MANAGE')
@audit_log('MAINT.ITEM.UPDATE', entity='MaintenanceItem', entity_id_key='id', meta_keys=['status'])
def update_item(item_id: int):
    item = MaintenanceApprovalManager(get_db()).update_item(item_id, request.json or {})
    return _item_json(item)


@maint_bp.put('/items/<int:item_id>/complete')
@require_permissions('MAINT.MANAGE')
@audit_log('MAINT.ITEM.COMPLETE', entity='MaintenanceItem', entity_id_key='id', meta_keys=['actual_cost'])
def complete_item(item_id: int):
    data = request.json or {}
    item = MaintenanceApprovalManager(get_db()).complete_item(item_id, as_number(data.get('actual_cost'), 'actual_cost'))
    return _item_json(item)


@maint_bp.delete('/items/<int:item_id>')
@require_permissions('MAINT.MANAGE')
@audit_log('MAINT.ITEM.DELETE', entity='MaintenanceItem', entity_id_arg='item_id')
def delete_item(item_id: int):
    MaintenanceApprovalManager(get_db()).delete_item(item_id)
    return {'deleted': True, 'id': item_id}
