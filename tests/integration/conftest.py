from urllib.parse import parse_qs, urlparse

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from authsentinel.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from authsentinel.api.app import create_app
from authsentinel.app.services.geolocation_resolver import IGeolocationLookup
from authsentinel.app.services.notification_throttler import NotificationDispatcher
from authsentinel.bootstrap import build_container
from authsentinel.domain.entities import NotificationKind
from authsentinel.domain.values import GeoLocation
from config import ApplicationConfig

ADMIN_KEY = "integration-admin-key"


class RecordingDispatcher(NotificationDispatcher):
    """Keeps every notification instead of sending it"""

    def __init__(self):
        self.sent = []

    async def send(self, recipient, template_kind, template_data):
        self.sent.append((recipient, template_kind, dict(template_data)))

    def of_kind(self, kind):
        return [entry for entry in self.sent if entry[1] == kind]

    def clear(self):
        self.sent.clear()


class NoNetworkLookup(IGeolocationLookup):
    """Resolves nothing; tests supply locations through edge headers"""

    service_name = "test"

    async def lookup(self, ip: str) -> GeoLocation:
        return GeoLocation()


@pytest_asyncio.fixture
def test_config(tmp_path):
    class TestConfig(ApplicationConfig):
        DB_URI = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
        DB_AUTO_CREATE = False
        BCRYPT_ROUNDS = 10
        ADMIN_API_KEY = ADMIN_KEY
        JWT_SECRET = "integration-secret"
        NOTIFICATION_BACKEND = "log"
        APP_BASE_URL = "http://test"

    return TestConfig


@pytest_asyncio.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest_asyncio.fixture
async def container(test_config, dispatcher):
    container = build_container(
        test_config, dispatcher=dispatcher, geolocation_client=NoNetworkLookup()
    )
    await container.create_schema()
    yield container
    await container.aclose()


@pytest_asyncio.fixture
async def db_session(container):
    async with container.session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def uow(db_session):
    return SqlAlchemyUnitOfWork(db_session)


@pytest_asyncio.fixture
async def client(test_config, container):
    app = create_app(test_config, container)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
def register_verified(client, dispatcher):
    """Register a principal through the API and follow its verification link"""

    async def _register(email="alice@example.com", password="SecurePass123!", name="Alice"):
        response = await client.post(
            "/auth/register", json={"email": email, "password": password, "name": name}
        )
        assert response.status_code == 201
        registered = response.json()

        _, _, data = dispatcher.of_kind(NotificationKind.email_verification)[-1]
        token = parse_qs(urlparse(data["verification_url"]).query)["token"][0]
        response = await client.post("/auth/verify-email", json={"token": token})
        assert response.status_code == 200

        dispatcher.clear()
        return registered

    return _register


@pytest_asyncio.fixture
def login(client):
    """Sign in with a fixed location supplied through edge headers"""

    async def _login(
        email="alice@example.com",
        password="SecurePass123!",
        city="Paris",
        country="France",
        ip="203.0.113.7",
    ):
        headers = {"cf-connecting-ip": ip, "user-agent": "Mozilla/5.0 (X11; Linux x86_64)"}
        if country:
            headers["cf-ipcountry"] = country
        if city:
            headers["cf-ipcity"] = city
        return await client.post(
            "/auth/login", json={"email": email, "password": password}, headers=headers
        )

    return _login


@pytest_asyncio.fixture
def admin_headers():
    return {"X-Admin-API-Key": ADMIN_KEY}
