import os, sys, pytest
# Ensure backend directory is on path so 'servicequeue' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
import servicequeue
from servicequeue import create_app, get_db
from servicequeue.models.authz import Base
# Import all model modules to ensure tables are registered before create_all
import servicequeue.models.vehicle  # noqa: F401
import servicequeue.models.ticket  # noqa: F401
import servicequeue.models.maintenance_item  # noqa: F401
import servicequeue.models.setting  # noqa: F401
import servicequeue.models.audit  # noqa: F401


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    os.environ['DATABASE_URL'] = 'sqlite+pysqlite:///:memory:'
    app = create_app({'SCHEDULER_ENABLED': False, 'TESTING': True})
    # After app and blueprints are registered, ensure all tables exist
    with app.app_context():
        engine = get_db().get_bind()
        Base.metadata.create_all(engine)
    yield app


@pytest.fixture(autouse=True)
def app_context(app_instance):
    with app_instance.app_context():
        yield app_instance
    # Every test starts from empty tables and a fresh session
    session = get_db()
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    servicequeue.SessionLocal.remove()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def session():
    return get_db()
