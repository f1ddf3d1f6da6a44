from __future__ import annotations
from flask import Blueprint, current_app
from servicequeue.decorators.auth import require_permissions
from servicequeue.decorators.audit import audit_log

jobs_bp = Blueprint('jobs', __name__)


def _scheduler():
    return current_app.extensions['job_scheduler']


@jobs_bp.get('')
@require_permissions('ADMIN.JOBS.RUN')
def list_jobs():
    sched = _scheduler()
    return {'running': sched.running, 'data': sched.list_jobs()}


@jobs_bp.post('/<name>/run')
@require_permissions('ADMIN.JOBS.RUN')
@audit_log('JOBS.RUN', entity='Job', entity_id_key='name')
def run_job(name: str):
    _scheduler().run_job_now(name)
    return {'name': name, 'status': 'completed'}
