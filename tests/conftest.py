import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="historial-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP}/bootstrap.db")
os.environ.setdefault("STORAGE_DIR", os.path.join(_TMP, "media"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

import historial.models  # noqa: F401
from historial.api.deps import get_db
from historial.core.config import settings
from historial.db.base import Base
from historial.db.init_db import init_db
from historial.db.session import make_engine, make_session_factory
from historial.main import app
from historial.schemas.user import RegisterIn
from historial.services import users as user_service

API = settings.API_V1_STR

ADMIN_PASSWORD = "Admin123"
STAFF_PASSWORD = "Doctor123"


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'historial.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    factory = make_session_factory(engine)
    with factory() as s:
        init_db(s, seed_users=False)
    return factory


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture(autouse=True)
def storage_dir(tmp_path, monkeypatch):
    d = tmp_path / "media"
    monkeypatch.setattr(settings, "STORAGE_DIR", str(d))
    return d


def register(username: str, password: str, **extra) -> RegisterIn:
    data = dict(
        username=username,
        email=f"{username}@hospital.org",
        password=password,
        confirm_password=password,
        first_name=username.capitalize(),
        last_name="Tester",
    )
    data.update(extra)
    return RegisterIn(**data)


@pytest.fixture
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(session_factory):
    with session_factory() as s:
        u = user_service.create_admin_user(s, register("admin", ADMIN_PASSWORD))
        return u.id


@pytest.fixture
def staff_user(session_factory, admin_user):
    with session_factory() as s:
        me = user_service.get_user(s, admin_user)
        u = user_service.create_user(s, register("doctor", STAFF_PASSWORD), me)
        return u.id


def _login(client, username, password) -> dict:
    resp = client.post(f"{API}/auth/login",
                       json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def admin_headers(client, admin_user):
    return _login(client, "admin", ADMIN_PASSWORD)


@pytest.fixture
def staff_headers(client, staff_user):
    return _login(client, "doctor", STAFF_PASSWORD)
