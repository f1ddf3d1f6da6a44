"""Reusable test helpers for the queue ticket lifecycle.

Patterns unified:
 - Auth header creation using direct JWT claims.
 - Creation + transition sequencing with assertion helpers.
"""
from __future__ import annotations
from typing import Dict, List
from flask_jwt_extended import create_access_token
from tests.test_utils_seed import ensure_permissions, ensure_user, ensure_vehicle

CUSTOMER_PERMS = ['QUEUE.TAKE', 'MAINT.READ', 'MAINT.APPROVE']
STAFF_PERMS = ['QUEUE.READ', 'QUEUE.MANAGE', 'MAINT.READ', 'MAINT.MANAGE']

# ---------- Generic Auth Helpers ---------- #

def jwt_headers(user_id: int, perms: List[str]):
    token = create_access_token(identity=str(user_id), additional_claims={'perms': perms})
    return {'Authorization': f'Bearer {token}'}


def seed_customer(email: str = 'customer@example.com', plate: str = 'ABC-123'):
    """Customer user with one vehicle; returns (user, vehicle, headers)."""
    ensure_permissions(CUSTOMER_PERMS)
    user = ensure_user(email)
    vehicle = ensure_vehicle(user, license_plate=plate)
    return user, vehicle, jwt_headers(user.id, CUSTOMER_PERMS)


def seed_staff(email: str = 'mechanic@example.com'):
    ensure_permissions(STAFF_PERMS)
    user = ensure_user(email)
    return user, jwt_headers(user.id, STAFF_PERMS)

# ---------- Assertion Helpers ---------- #

def assert_transition(client, url: str, headers: Dict[str, str], expected_status: int, expected_body_key: str = 'status', expected_body_value: str = None):
    resp = client.put(url, headers=headers)
    assert resp.status_code == expected_status, resp.get_json()
    if expected_status < 400 and expected_body_value is not None:
        body = resp.get_json()
        assert body[expected_body_key] == expected_body_value
    return resp


def create_resource_and_assert(client, url: str, payload: dict, headers: Dict[str, str], expected_status_field: str = 'status', expected_initial_status: str = None):
    resp = client.post(url, json=payload, headers=headers)
    assert resp.status_code == 201, resp.get_json()
    body = resp.get_json()
    if expected_initial_status:
        assert body[expected_status_field] == expected_initial_status
    return body

# ---------- Domain Specific Wrappers ---------- #

def exercise_queue_ticket_lifecycle(client, customer_headers, staff_headers, vehicle_id: int):
    ticket = create_resource_and_assert(client, '/queue/take', {'vehicle_id': vehicle_id, 'service_type': 'Oil change'}, customer_headers, expected_initial_status='waiting')
    tid = ticket['id']
    assert_transition(client, f'/queue/{tid}/call', staff_headers, 200, expected_body_value='called')
    assert_transition(client, f'/queue/{tid}/start', staff_headers, 200, expected_body_value='in_service')
    assert_transition(client, f'/queue/{tid}/complete', staff_headers, 200, expected_body_value='completed')
    return tid

__all__ = [
    'jwt_headers', 'seed_customer', 'seed_staff', 'assert_transition', 'create_resource_and_assert',
    'exercise_queue_ticket_lifecycle', 'CUSTOMER_PERMS', 'STAFF_PERMS',
]
