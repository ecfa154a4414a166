import os
import tempfile
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# FORCE TESTING MODE
# This must be done BEFORE importing app.main so Settings() and the
# rate limiter pick these values up.
# ------------------------------------------------------------------
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-campus-portal")
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="campus-portal-")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("SMTP_HOST", None)

from app.main import app
from app.core.security import create_access_token
from app.core.store import CollectionStore
from app.models.user import UserRole
from app.services import auth_service
from app.services.auth_service import ResetCodeStore
from app.services.broadcast import Broadcaster


@pytest.fixture(autouse=True)
def fresh_state(tmp_path):
    """Every test gets its own data directory, broadcaster and code store."""
    app.state.store = CollectionStore(str(tmp_path))
    app.state.broadcaster = Broadcaster(queue_size=64)
    app.state.reset_codes = ResetCodeStore(ttl_minutes=5)
    yield


@pytest.fixture
def store():
    return app.state.store


@pytest.fixture
def broadcaster():
    return app.state.broadcaster


@pytest_asyncio.fixture
async def client():
    """
    Correct fixture for httpx >= 0.27
    Uses ASGITransport() instead of app=...
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


def make_user(store, email, role=UserRole.Student, password="password123", **extra):
    fields = {"email": email, "name": email.split("@")[0], "password": password, "role": role, **extra}
    return auth_service.create_user(store, None, fields, actor="system")


def auth_headers(email):
    return {"Authorization": f"Bearer {create_access_token(subject=email)}"}


@pytest.fixture
def admin_headers(store):
    make_user(store, "admin@example.com", role=UserRole.Admin)
    return auth_headers("admin@example.com")


@pytest.fixture
def student_headers(store):
    make_user(store, "student@example.com", role=UserRole.Student)
    return auth_headers("student@example.com")


@pytest.fixture
def faculty_headers(store):
    make_user(store, "faculty@example.com", role=UserRole.Faculty)
    return auth_headers("faculty@example.com")


@pytest.fixture
def new_user(store):
    """Factory: new_user(email, role=..., **fields) -> stored record."""
    def _make(email, role=UserRole.Student, **extra):
        return make_user(store, email, role=role, **extra)
    return _make


@pytest.fixture
def headers_for():
    return auth_headers
