from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()
scheduler = None


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).strip().lower() in {'1', 'true', 'yes'}


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal, scheduler
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    app.config['SCHEDULER_ENABLED'] = _env_flag('SCHEDULER_ENABLED')

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .routes.queue import queue_bp
    from .routes.maintenance import maint_bp
    from .routes.settings import settings_bp
    from .routes.jobs import jobs_bp
    app.register_blueprint(queue_bp, url_prefix='/queue')
    app.register_blueprint(maint_bp, url_prefix='/maintenance')
    app.register_blueprint(settings_bp, url_prefix='/settings')
    app.register_blueprint(jobs_bp, url_prefix='/admin/jobs')

    scheduler = build_scheduler()
    app.extensions['job_scheduler'] = scheduler
    if app.config['SCHEDULER_ENABLED']:
        scheduler.start()

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            kind = getattr(e, 'kind', None)
            if kind:
                payload['error']['kind'] = kind
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    return app


def build_scheduler():
    """Scheduler with the daily cleanup job registered; not started."""
    from .jobs.scheduler import JobScheduler
    from .jobs.daily_cleanup import DailyCleanupJob
    sched = JobScheduler(teardown=lambda: SessionLocal.remove())
    sched.register_job(DailyCleanupJob(get_db))
    return sched


def get_db():
    return SessionLocal()
