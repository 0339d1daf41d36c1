import os, sys, pytest
# Ensure backend directory is on path so 'fluvial' and 'tests' can be imported
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
from fluvial import create_app, get_db, DB_EXTENSION
from fluvial.models import Base


@pytest.fixture(scope='session', autouse=True)
def app_instance():
    app = create_app({
        'TESTING': True,
        'JWT_SECRET_KEY': 'test-secret-key-long-enough-for-hs256-signing',
        'DATABASE_URL': 'sqlite+pysqlite:///:memory:',
        'STRICT_TRANSITIONS': False,
        'VERIFY_SCANNED_CODE': False,
    })
    # Keep one application context for the whole suite so get_db() works in helpers
    ctx = app.app_context()
    ctx.push()
    engine = get_db().get_bind()
    Base.metadata.create_all(engine)
    yield app
    ctx.pop()
    app.extensions[DB_EXTENSION].dispose()


@pytest.fixture()
def client(app_instance):
    return app_instance.test_client()


@pytest.fixture()
def session(app_instance):
    return get_db()
