import fakeredis
import mongomock
import pytest
from fastapi.testclient import TestClient
from mongoengine import connect, disconnect

from app.connections.redis import set_redis
from app.models.bootcamp import Bootcamp
from app.models.course import Course
from app.models.user import User
from app.services.credentials import create_user
from app.services.mail import MailSender, get_mail_sender
from app.utils.errors import EmailDeliveryError
from main import app


class FakeMailSender(MailSender):
    """Records outgoing mail instead of talking to an SMTP relay."""

    def __init__(self, fail: bool = False) -> None:
        super().__init__(host="localhost", port=25, from_email="noreply@test.io", from_name="Test")
        self.fail = fail
        self.sent: list[dict] = []

    def send(self, email: str, subject: str, message: str) -> None:
        self.sent.append({"email": email, "subject": subject, "message": message})
        if self.fail:
            raise EmailDeliveryError()


@pytest.fixture(autouse=True)
def mongo():
    """In-memory MongoDB for every test."""
    disconnect(alias="default")
    connect(
        "devcamper_test",
        host="mongodb://localhost",
        alias="default",
        mongo_client_class=mongomock.MongoClient,
        tz_aware=True,
    )
    for model in (Course, Bootcamp, User):
        model.drop_collection()
    yield
    for model in (Course, Bootcamp, User):
        model.drop_collection()
    disconnect(alias="default")


@pytest.fixture(autouse=True)
def fake_redis():
    client = fakeredis.FakeRedis(decode_responses=True)
    set_redis(client)
    yield client
    set_redis(None)


@pytest.fixture
def mailer():
    sender = FakeMailSender()
    app.dependency_overrides[get_mail_sender] = lambda: sender
    yield sender
    app.dependency_overrides.pop(get_mail_sender, None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class Api:
    """Thin helpers over the test client for the auth endpoints."""

    def __init__(self, client: TestClient) -> None:
        self.client = client

    def register(self, name: str, email: str, password: str = "secret123", role: str = "user") -> str:
        response = self.client.post(
            "/api/v1/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert response.status_code == 200, response.text
        return response.json()["token"]

    def login(self, email: str, password: str) -> str:
        response = self.client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["token"]


@pytest.fixture
def api(client: TestClient) -> Api:
    return Api(client)


@pytest.fixture
def admin_token(api: Api) -> str:
    """Admins cannot self-register, so seed one directly in the store."""
    create_user(name="Root", email="root@devcamper.io", password="rootpass", role="admin")
    return api.login("root@devcamper.io", "rootpass")


@pytest.fixture
def auth():
    return bearer