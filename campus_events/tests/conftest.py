import os

# Ensure JWT_SECRET is set before the auth helpers are imported
os.environ.setdefault("JWT_SECRET", "test_secret")

import pytest

from campus_events.database.kv_store import MemoryKV
from campus_events.database.record_store import USERS, KVRecordStore, LocalRecordStore
from campus_events.domain.models import new_user


@pytest.fixture(params=["kv", "local"])
def store(request):
    """
    A fresh empty store; every test using it runs once per backend.
    """
    if request.param == "kv":
        return KVRecordStore(MemoryKV())
    return LocalRecordStore({})


@pytest.fixture
def app(store):
    from campus_events.gateway.server import create_app

    app = create_app(store=store, config={"SEED_ON_STARTUP": False, "AUTH_TOKEN_MODE": "jwt"})
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(store):
    """
    Factory that stores a user and returns it.
    """
    def _make_user(name="Student", email=None, role="student", roll_number=None, **extra):
        email = email or f"{name.lower().replace(' ', '.')}@klu.ac.in"
        user = new_user(
            email=email,
            name=name,
            role=role,
            department=extra.get("department", "Computer Science"),
            year=extra.get("year", "3"),
            roll_number=roll_number,
            course=extra.get("course", "B.Tech"),
        )
        store.put(USERS, user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", email="admin@klu.ac.in", role="admin")


@pytest.fixture
def student(make_user):
    return make_user(name="Asha", email="asha@klu.ac.in", roll_number="CS21001")


@pytest.fixture
def auth_header():
    from campus_events.auth_service.utils import create_token

    def _auth_header(user):
        return {"Authorization": f"Bearer {create_token(user['id'], user['role'])}"}

    return _auth_header


@pytest.fixture
def event_data():
    return {
        "name": "Hackathon",
        "description": "24 hour build",
        "category": "technical",
        "venue": "Lab 2",
        "date": "2030-01-15",
        "time": "09:00",
        "capacity": 2,
        "contactPerson": "Dr. Rao",
        "contactEmail": "rao@klu.ac.in",
    }


@pytest.fixture
def mock_db(mocker):
    """
    Mocks the database connection and cursor used by PostgresKV.
    """
    mock_conn = mocker.Mock()
    mock_cursor = mocker.Mock()

    # Setup the context manager for connection
    mock_conn.__enter__ = mocker.Mock(return_value=mock_conn)
    mock_conn.__exit__ = mocker.Mock(return_value=None)

    # Setup the context manager for cursor
    mock_cursor.__enter__ = mocker.Mock(return_value=mock_cursor)
    mock_cursor.__exit__ = mocker.Mock(return_value=None)

    # Connect cursor to connection
    mock_conn.cursor.return_value = mock_cursor

    mocker.patch("campus_events.database.kv_store.get_db", return_value=mock_conn)

    return mock_conn, mock_cursor
