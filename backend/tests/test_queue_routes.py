from datetime import datetime, timezone
from servicequeue import get_db
from servicequeue.constants import settings as keys
from servicequeue.models.audit import AuditLog
from tests.test_utils_seed import ensure_user, ensure_vehicle, set_setting
from tests.test_lifecycle_helpers import (
    jwt_headers, seed_customer, seed_staff, assert_transition, create_resource_and_assert,
    exercise_queue_ticket_lifecycle, CUSTOMER_PERMS,
)


def _today():
    return datetime.now(timezone.utc).date().isoformat()


def test_queue_ticket_lifecycle(client):
    _, vehicle, customer_headers = seed_customer()
    _, staff_headers = seed_staff()
    tid = exercise_queue_ticket_lifecycle(client, customer_headers, staff_headers, vehicle.id)
    body = client.get(f'/queue/number/1?date={_today()}', headers=staff_headers).get_json()
    assert body['id'] == tid
    assert body['service_end_at'] is not None


def test_take_ticket_for_specific_date(client):
    _, vehicle, headers = seed_customer()
    body = create_resource_and_assert(client, '/queue/take', {
        'vehicle_id': vehicle.id, 'service_type': 'Brakes', 'service_date': '2026-05-01', 'estimated_time': 45,
    }, headers, expected_initial_status='waiting')
    assert body['queue_number'] == 1
    assert body['service_date'] == '2026-05-01'
    assert body['estimated_time'] == 45


def test_take_ticket_validation(client):
    _, vehicle, headers = seed_customer()
    resp = client.post('/queue/take', json={'vehicle_id': vehicle.id, 'service_type': 'X', 'service_date': '05/01/2026'}, headers=headers)
    assert resp.status_code == 400
    assert resp.get_json()['error']['detail'] == 'Invalid service_date format. Use YYYY-MM-DD'
    resp = client.post('/queue/take', json={'service_type': 'X'}, headers=headers)
    assert resp.status_code == 400
    resp = client.post('/queue/take', json={'vehicle_id': 9999, 'service_type': 'X'}, headers=headers)
    assert resp.status_code == 404
    assert resp.get_json()['error']['kind'] == 'not_found'


def test_capacity_exceeded_over_http(client):
    set_setting(keys.MAX_TICKETS_PER_DAY, '1')
    _, vehicle, headers = seed_customer()
    payload = {'vehicle_id': vehicle.id, 'service_type': 'Oil change', 'service_date': '2026-05-01'}
    assert client.post('/queue/take', json=payload, headers=headers).status_code == 201
    resp = client.post('/queue/take', json=payload, headers=headers)
    assert resp.status_code == 409
    err = resp.get_json()['error']
    assert err['kind'] == 'capacity_exceeded'
    assert 'maximum 1 tickets per day' in err['detail']
    avail = client.get('/queue/availability?date=2026-05-01', headers=headers).get_json()
    assert avail == {'service_date': '2026-05-01', 'available': False, 'remaining_slots': 0, 'max_tickets': 1}


def test_invalid_transition_over_http(client):
    _, vehicle, customer_headers = seed_customer()
    _, staff_headers = seed_staff()
    t = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, customer_headers)
    resp = assert_transition(client, f"/queue/{t['id']}/complete", staff_headers, 400)
    err = resp.get_json()['error']
    assert err['kind'] == 'invalid_state_transition'
    assert err['detail'] == 'service must be in progress to complete'
    assert_transition(client, f"/queue/{t['id']}/call", staff_headers, 200, expected_body_value='called')
    assert_transition(client, f"/queue/{t['id']}/no-show", staff_headers, 200, expected_body_value='no_show')


def test_cancel_own_ticket_only(client):
    _, vehicle, owner_headers = seed_customer()
    stranger = ensure_user('stranger@example.com')
    stranger_headers = jwt_headers(stranger.id, CUSTOMER_PERMS)
    desk, _ = seed_staff()
    desk_headers = jwt_headers(desk.id, ['QUEUE.TAKE', 'QUEUE.MANAGE'])
    t = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, owner_headers)
    resp = client.put(f"/queue/{t['id']}/cancel", headers=stranger_headers)
    assert resp.status_code == 403
    assert_transition(client, f"/queue/{t['id']}/cancel", owner_headers, 200, expected_body_value='canceled')
    t2 = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, owner_headers)
    assert t2['queue_number'] == 2
    assert_transition(client, f"/queue/{t2['id']}/cancel", desk_headers, 200, expected_body_value='canceled')


def test_progress_and_my_tickets(client):
    owner, vehicle, headers = seed_customer()
    other = ensure_user('second@example.com')
    other_vehicle = ensure_vehicle(other, license_plate='XYZ-9')
    other_headers = jwt_headers(other.id, CUSTOMER_PERMS)
    first = create_resource_and_assert(client, '/queue/take', {'vehicle_id': other_vehicle.id, 'service_type': 'Oil'}, other_headers)
    mine = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, headers)
    progress = client.get(f"/queue/{mine['id']}/progress", headers=headers).get_json()
    assert progress['waiting_ahead'] == 1
    assert progress['estimated_wait_minutes'] == 30
    assert progress['message'] == '1 customer(s) ahead of you in the queue'
    resp = client.get(f"/queue/{first['id']}/progress", headers=headers)
    assert resp.status_code == 403
    assert resp.get_json()['error']['kind'] == 'unauthorized'
    listing = client.get('/queue/my?limit=1', headers=headers).get_json()
    assert listing['pagination']['total'] == 1
    assert listing['data'][0]['id'] == mine['id']


def test_staff_queue_views(client):
    _, vehicle, headers = seed_customer()
    _, staff_headers = seed_staff()
    for _ in range(3):
        create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, headers)
    today = client.get('/queue/today', headers=staff_headers).get_json()
    assert today['waiting'] == 3
    assert [t['queue_number'] for t in today['data']] == [1, 2, 3]
    paged = client.get(f'/queue/date?date={_today()}&limit=2&offset=1', headers=staff_headers).get_json()
    assert paged['pagination'] == {'total': 3, 'limit': 2, 'offset': 1, 'returned': 2}
    assert client.get('/queue/date', headers=staff_headers).status_code == 400
    assert client.get(f'/queue/number/9?date={_today()}', headers=staff_headers).status_code == 404


def test_mutations_are_audited(client):
    _, vehicle, headers = seed_customer()
    _, staff_headers = seed_staff()
    t = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, headers)
    client.put(f"/queue/{t['id']}/call", headers=staff_headers)
    client.put(f"/queue/{t['id']}/complete", headers=staff_headers)  # rejected, not audited
    actions = [a.action for a in get_db().query(AuditLog).order_by(AuditLog.id)]
    assert actions == ['QUEUE.TAKE', 'QUEUE.CALL']
    take = get_db().query(AuditLog).filter_by(action='QUEUE.TAKE').one()
    assert take.entity_id == str(t['id'])
    assert take.meta['queue_number'] == 1
