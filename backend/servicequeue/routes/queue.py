from __future__ import annotations
from datetime import datetime, timezone
from flask import Blueprint, request
from servicequeue.decorators.auth import require_permissions
from servicequeue.decorators.audit import audit_log
from servicequeue.errors import UnauthorizedError
from servicequeue.models.ticket import QueueTicket
from servicequeue.services.policy import current_user_id, is_owner_or
from servicequeue.services.queue import QueueLifecycleManager
from servicequeue.utils.listing import apply_pagination, build_list_payload
from servicequeue.utils.validation import as_int, parse_service_date, require_fields
from servicequeue.stores.tickets import TicketStore
from servicequeue import get_db

queue_bp = Blueprint('queue', __name__)


def _today():
    return datetime.now(timezone.utc).date()


def _iso(dt):
    return dt.isoformat() if dt else None


def _ticket_json(t: QueueTicket):
    return {
        'id': t.id,
        'queue_number': t.queue_number,
        'vehicle_id': t.vehicle_id,
        'customer_id': t.customer_id,
        'service_date': t.service_date.isoformat(),
        'service_type': t.service_type,
        'estimated_time': t.estimated_time,
        'status': t.status,
        'notes': t.notes,
        'called_at': _iso(t.called_at),
        'service_start_at': _iso(t.service_start_at),
        'service_end_at': _iso(t.service_end_at),
        'created_at': _iso(t.created_at),
        'updated_at': _iso(t.updated_at),
    }


@queue_bp.post('/take')
@require_permissions('QUEUE.TAKE')
@audit_log('QUEUE.TAKE', entity='QueueTicket', entity_id_key='id', meta_keys=['queue_number', 'service_date'])
def take_queue_number():
    data = request.json or {}
    require_fields(data, 'vehicle_id', 'service_type')
    service_date = parse_service_date(data.get('service_date'), default=_today())
    manager = QueueLifecycleManager(get_db())
    t = manager.take_queue_number(
        customer_id=current_user_id(),
        vehicle_id=as_int(data.get('vehicle_id'), 'vehicle_id'),
        service_date=service_date,
        service_type=data['service_type'],
        estimated_time=as_int(data.get('estimated_time'), 'estimated_time', default=0),
        notes=data.get('notes') or '',
    )
    return _ticket_json(t), 201


@queue_bp.get('/my')
@require_permissions('QUEUE.TAKE')
def my_tickets():
    q = TicketStore(get_db()).customer_query(current_user_id())
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [_ticket_json(t) for t in paged_q.all()]
    return build_list_payload(rows, total, limit, offset)


@queue_bp.get('/today')
@require_permissions('QUEUE.READ')
def today_queue():
    manager = QueueLifecycleManager(get_db())
    today = _today()
    rows = manager.get_today_queue(today)
    return {
        'service_date': today.isoformat(),
        'waiting': manager.get_waiting_count(today),
        'data': [_ticket_json(t) for t in rows],
    }


@queue_bp.get('/date')
@require_permissions('QUEUE.READ')
def queue_by_date():
    service_date = parse_service_date(request.args.get('date'))
    q = TicketStore(get_db()).date_query(service_date)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [_ticket_json(t) for t in paged_q.all()]
    return build_list_payload(rows, total, limit, offset)


@queue_bp.get('/number/<int:queue_number>')
@require_permissions('QUEUE.READ')
def ticket_by_number(queue_number: int):
    service_date = parse_service_date(request.args.get('date'), default=_today())
    t = QueueLifecycleManager(get_db()).get_by_queue_number(queue_number, service_date)
    return _ticket_json(t)


@queue_bp.get('/availability')
@require_permissions('QUEUE.TAKE')
def availability():
    service_date = parse_service_date(request.args.get('date'), default=_today())
    manager = QueueLifecycleManager(get_db())
    available, remaining = manager.check_ticket_availability(service_date)
    return {
        'service_date': service_date.isoformat(),
        'available': available,
        'remaining_slots': remaining,
        'max_tickets': manager.settings.max_tickets_per_day(),
    }


@queue_bp.get('/<int:ticket_id>/progress')
@require_permissions('QUEUE.TAKE')
def service_progress(ticket_id: int):
    result = QueueLifecycleManager(get_db()).service_progress(ticket_id, customer_id=current_user_id())
    return result.to_dict()


@queue_bp.put('/<int:ticket_id>/cancel')
@require_permissions('QUEUE.TAKE')
@audit_log('QUEUE.CANCEL', entity='QueueTicket', entity_id_arg='ticket_id', meta_keys=['status'])
def cancel(ticket_id: int):
    manager = QueueLifecycleManager(get_db())
    t = manager.get_ticket(ticket_id)
    if not is_owner_or(t.customer_id, 'QUEUE.MANAGE'):
        raise UnauthorizedError('unauthorized: not your ticket')
    return _ticket_json(manager.cancel_queue(ticket_id))


@queue_bp.put('/<int:ticket_id>/call')
@require_permissions('QUEUE.MANAGE')
@audit_log('QUEUE.CALL', entity='QueueTicket', entity_id_arg='ticket_id', meta_keys=['status', 'queue_number'])
def call_customer(ticket_id: int):
    return _ticket_json(QueueLifecycleManager(get_db()).call_customer(ticket_id))


@queue_bp.put('/<int:ticket_id>/start')
@require_permissions('QUEUE.MANAGE')
@audit_log('QUEUE.START', entity='QueueTicket', entity_id_arg='ticket_id', meta_keys=['status'])
def start_service(ticket_id: int):
    return _ticket_json(QueueLifecycleManager(get_db()).start_service(ticket_id))


@queue_bp.put('/<int:ticket_id>/complete')
@require_permissions('QUEUE.MANAGE')
@audit_log('QUEUE.COMPLETE', entity='QueueTicket', entity_id_arg='ticket_id', meta_keys=['status'])
def complete_service(ticket_id: int):
    return _ticket_json(QueueLifecycleManager(get_db()).complete_service(ticket_id))


@queue_bp.put('/<int:ticket_id>/no-show')
@require_permissions('QUEUE.MANAGE')
@audit_log('QUEUE.NO_SHOW', entity='QueueTicket', entity_id_arg='ticket_id', meta_keys=['status'])
def mark_no_show(ticket_id: int):
    return _ticket_json(QueueLifecycleManager(get_db()).mark_no_show(ticket_id))
