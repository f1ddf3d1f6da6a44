from tests.test_utils_seed import ensure_user, ensure_vehicle
from tests.test_lifecycle_helpers import (
    jwt_headers, seed_customer, seed_staff, assert_transition, create_resource_and_assert, CUSTOMER_PERMS,
)


def _ticket_in_service(client, customer_headers, staff_headers, vehicle_id):
    t = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle_id, 'service_type': 'Inspection'}, customer_headers)
    assert_transition(client, f"/queue/{t['id']}/call", staff_headers, 200)
    assert_transition(client, f"/queue/{t['id']}/start", staff_headers, 200, expected_body_value='in_service')
    return t['id']


def test_inspection_and_approval_flow(client):
    _, vehicle, customer_headers = seed_customer()
    _, staff_headers = seed_staff()
    tid = _ticket_in_service(client, customer_headers, staff_headers, vehicle.id)
    created = client.post(f'/maintenance/tickets/{tid}/items', json={'items': [
        {'category': 'engine', 'name': 'Oil change', 'estimated_cost': 40},
    ]}, headers=customer_headers)
    assert created.status_code == 201
    initial_id = created.get_json()['data'][0]['id']
    item = create_resource_and_assert(client, '/maintenance/items/discovered', {
        'ticket_id': tid, 'category': 'brakes', 'name': 'Brake pads', 'priority': 'high', 'estimated_cost': 120,
    }, staff_headers, expected_initial_status='inspected')
    summary = client.get(f'/maintenance/tickets/{tid}/inspection-summary', headers=customer_headers).get_json()
    assert summary['requires_approval'] is True
    assert summary['total_estimated_cost'] == 160.0
    assert summary['vehicle']['license_plate'] == 'ABC-123'
    resp = client.post('/maintenance/items/approve', json={'item_ids': [item['id']], 'approve': True}, headers=customer_headers)
    assert resp.status_code == 200
    assert resp.get_json() == {'item_ids': [item['id']], 'approved': True}
    done = client.put(f"/maintenance/items/{item['id']}/complete", json={'actual_cost': 110}, headers=staff_headers)
    assert done.get_json()['status'] == 'completed'
    listing = client.get(f'/maintenance/tickets/{tid}/items', headers=customer_headers).get_json()
    assert listing['total'] == 2
    assert listing['completed'] == 1
    assert listing['total_actual'] == 110.0
    assert {i['id'] for i in listing['data']} == {initial_id, item['id']}


def test_discovery_requires_in_service_ticket(client):
    _, vehicle, customer_headers = seed_customer()
    _, staff_headers = seed_staff()
    t = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, customer_headers)
    resp = client.post('/maintenance/items/discovered', json={'ticket_id': t['id'], 'category': 'brakes', 'name': 'Pads'}, headers=staff_headers)
    assert resp.status_code == 400
    assert resp.get_json()['error']['detail'] == 'service must be in progress to add discovered items'


def test_foreign_customer_cannot_approve(client):
    _, vehicle, customer_headers = seed_customer()
    _, staff_headers = seed_staff()
    intruder = ensure_user('intruder@example.com')
    intruder_headers = jwt_headers(intruder.id, CUSTOMER_PERMS)
    tid = _ticket_in_service(client, customer_headers, staff_headers, vehicle.id)
    item = create_resource_and_assert(client, '/maintenance/items/discovered', {
        'ticket_id': tid, 'category': 'brakes', 'name': 'Pads',
    }, staff_headers)
    resp = client.post('/maintenance/items/approve', json={'item_ids': [item['id']]}, headers=intruder_headers)
    assert resp.status_code == 403
    assert resp.get_json()['error']['detail'] == 'unauthorized: not your maintenance item'
    resp = client.get(f'/maintenance/tickets/{tid}/inspection-summary', headers=intruder_headers)
    assert resp.status_code == 403


def test_approve_payload_validation(client):
    _, _, customer_headers = seed_customer()
    assert client.post('/maintenance/items/approve', json={}, headers=customer_headers).status_code == 400
    assert client.post('/maintenance/items/approve', json={'item_ids': []}, headers=customer_headers).status_code == 400
    resp = client.post('/maintenance/items/approve', json={'item_ids': [1], 'approve': 'yes'}, headers=customer_headers)
    assert resp.status_code == 400


def test_update_and_delete_item(client):
    owner, vehicle, customer_headers = seed_customer()
    _, staff_headers = seed_staff()
    t = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, customer_headers)
    created = client.post(f"/maintenance/tickets/{t['id']}/items", json={'items': [{'category': 'engine', 'name': 'Oil'}]}, headers=customer_headers)
    item_id = created.get_json()['data'][0]['id']
    resp = client.put(f'/maintenance/items/{item_id}', json={'priority': 'urgent', 'labor_hours': 1.5}, headers=staff_headers)
    assert resp.get_json()['priority'] == 'urgent'
    assert resp.get_json()['labor_hours'] == 1.5
    assert client.put(f'/maintenance/items/{item_id}', json={'priority': 'later'}, headers=staff_headers).status_code == 400
    assert client.delete(f'/maintenance/items/{item_id}', headers=staff_headers).get_json() == {'deleted': True, 'id': item_id}
    assert client.delete(f'/maintenance/items/{item_id}', headers=staff_headers).status_code == 404
    # customers cannot manage items
    assert client.delete(f'/maintenance/items/{item_id}', headers=customer_headers).status_code == 403


def test_foreign_customer_cannot_add_or_list_items(client):
    _, vehicle, customer_headers = seed_customer()
    _, staff_headers = seed_staff()
    other = ensure_user('neighbour@example.com')
    other_headers = jwt_headers(other.id, CUSTOMER_PERMS)
    t = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle.id, 'service_type': 'Oil'}, customer_headers)
    payload = {'items': [{'category': 'engine', 'name': 'Turbo', 'estimated_cost': 5000}]}
    resp = client.post(f"/maintenance/tickets/{t['id']}/items", json=payload, headers=other_headers)
    assert resp.status_code == 403
    assert resp.get_json()['error']['detail'] == 'unauthorized: not your ticket'
    resp = client.get(f"/maintenance/tickets/{t['id']}/items", headers=other_headers)
    assert resp.status_code == 403
    # staff see every ticket
    listing = client.get(f"/maintenance/tickets/{t['id']}/items", headers=staff_headers).get_json()
    assert listing['total'] == 0
    assert listing['total_estimated'] == 0.0
