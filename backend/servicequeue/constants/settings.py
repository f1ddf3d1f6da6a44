"""Setting keys the queue depends on plus the seeded defaults.

Typed accessors fall back to the ``DEFAULT_*`` values whenever a key is missing,
so the service works before ``seed_default_settings`` has run.
"""
from __future__ import annotations
from typing import Any, Dict, List

MAX_TICKETS_PER_DAY = 'waiting_list.max_tickets_per_day'
CLEANUP_RETENTION_DAYS = 'waiting_list.cleanup_retention_days'
JOB_ENABLED = 'waiting_list.job_enabled'
JOB_SCHEDULE = 'waiting_list.job_schedule'

DEFAULT_MAX_TICKETS_PER_DAY = 10
DEFAULT_CLEANUP_RETENTION_DAYS = 7
DEFAULT_JOB_ENABLED = True
DEFAULT_JOB_SCHEDULE = '0 0 * * *'

DEFAULT_SETTINGS: List[Dict[str, Any]] = [
    {
        'key': MAX_TICKETS_PER_DAY,
        'value': str(DEFAULT_MAX_TICKETS_PER_DAY),
        'type': 'int',
        'description': 'Maximum number of waiting list tickets allowed per day',
        'category': 'waiting_list',
        'is_editable': True,
        'is_public': True,
    },
    {
        'key': CLEANUP_RETENTION_DAYS,
        'value': str(DEFAULT_CLEANUP_RETENTION_DAYS),
        'type': 'int',
        'description': 'Number of days to keep completed/canceled entries before cleanup',
        'category': 'waiting_list',
        'is_editable': True,
        'is_public': False,
    },
    {
        'key': JOB_ENABLED,
        'value': 'true',
        'type': 'bool',
        'description': 'Enable or disable the daily cleanup job',
        'category': 'waiting_list',
        'is_editable': True,
        'is_public': False,
    },
    {
        'key': JOB_SCHEDULE,
        'value': DEFAULT_JOB_SCHEDULE,
        'type': 'string',
        'description': 'Cron schedule for daily cleanup job (format: minute hour day month weekday)',
        'category': 'waiting_list',
        'is_editable': True,
        'is_public': False,
    },
    {
        'key': 'waiting_list.allow_future_booking_days',
        'value': '30',
        'type': 'int',
        'description': 'How many days in advance customers can book tickets',
        'category': 'waiting_list',
        'is_editable': True,
        'is_public': True,
    },
    {
        'key': 'business.shop_name',
        'value': 'Car Service Center',
        'type': 'string',
        'description': 'Name of the car service shop',
        'category': 'business',
        'is_editable': True,
        'is_public': True,
    },
    {
        'key': 'business.opening_time',
        'value': '08:00',
        'type': 'string',
        'description': 'Shop opening time (HH:MM format)',
        'category': 'business',
        'is_editable': True,
        'is_public': True,
    },
    {
        'key': 'business.closing_time',
        'value': '18:00',
        'type': 'string',
        'description': 'Shop closing time (HH:MM format)',
        'category': 'business',
        'is_editable': True,
        'is_public': True,
    },
    {
        'key': 'business.working_days',
        'value': 'Monday,Tuesday,Wednesday,Thursday,Friday,Saturday',
        'type': 'string',
        'description': 'Working days of the week (comma-separated)',
        'category': 'business',
        'is_editable': True,
        'is_public': True,
    },
]
