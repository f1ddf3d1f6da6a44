"""Central enum-like definitions to avoid typos in permission/service strings.
Extend cautiously; never rename codes silently - create new ones and deprecate old via migration if needed.
"""
from __future__ import annotations
from typing import List, Dict

SERVICES = ['QUEUE', 'MAINT', 'ADMIN']

SERVICE_ACTIONS = {
    # TAKE: customer-facing ticket actions; MANAGE: service desk transitions
    'QUEUE': ['TAKE', 'READ', 'MANAGE'],
    'MAINT': ['READ', 'APPROVE', 'MANAGE'],
    'ADMIN': ['SETTINGS.MANAGE', 'JOBS.RUN'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    'Customer': ['QUEUE.TAKE', 'MAINT.READ', 'MAINT.APPROVE'],
    'Mechanic': ['QUEUE.READ', 'QUEUE.MANAGE', 'MAINT.READ', 'MAINT.MANAGE'],
    'Manager': [
        'QUEUE.TAKE', 'QUEUE.READ', 'QUEUE.MANAGE',
        'MAINT.READ', 'MAINT.MANAGE',
        'ADMIN.JOBS.RUN',
    ],
    'Owner': ['*'],
}
