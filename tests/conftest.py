"""Shared test fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from reunion.collaborators import Collaborators, get_collaborators
from reunion.core.database import get_session
from reunion.core.errors import CollaboratorFailure, Unauthorized
from reunion.core.ratelimit import GLOBAL_MESSAGE, REGISTRATION_MESSAGE, SlidingWindowLimiter
from reunion.main import app
from reunion.models import Principal


class FakeIdentity:
    """Identity service backed by a token table."""

    def __init__(self):
        self.tokens: dict[str, Principal] = {}
        self.accounts: dict[str, str] = {}

    def issue(self, user_id: str, email: str | None = None) -> str:
        token = f"token-{user_id}"
        self.tokens[token] = Principal(id=user_id, email=email)
        return token

    async def verify_token(self, token: str) -> Principal:
        if token not in self.tokens:
            raise Unauthorized("Invalid or expired token")
        return self.tokens[token]

    async def create_account(self, email: str, password: str) -> dict:
        if email in self.accounts:
            raise CollaboratorFailure("identity", "User already registered")
        self.accounts[email] = password
        return {"user": {"id": f"user-{len(self.accounts)}", "email": email}, "session": None}

    async def password_login(self, email: str, password: str) -> dict:
        if self.accounts.get(email) != password:
            raise Unauthorized("Invalid login credentials")
        return {"access_token": f"session-{email}", "token_type": "bearer"}


class FakeStorage:
    """Write-once object store kept in a dict."""

    base_url = "https://storage.test/images"

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.fail = False

    async def put_object(self, path: str, data: bytes, content_type: str) -> None:
        if self.fail:
            raise CollaboratorFailure("storage", "Bucket not found")
        if path in self.objects:
            raise CollaboratorFailure("storage", "The resource already exists")
        self.objects[path] = (data, content_type)

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    async def list_objects(self, prefix="", sort_by="created_at", order="desc", limit=100):
        paths = [p for p in self.objects if p.startswith(f"{prefix}/")]
        if order == "desc":
            paths.reverse()
        return [
            {"name": p.rsplit("/", 1)[-1], "path": p, "url": self.public_url(p)}
            for p in paths[:limit]
        ]


class FakeMail:
    """Records sent messages; can be told to fail."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send(self, to_email: str, to_name: str, subject: str, html: str):
        if self.fail:
            raise CollaboratorFailure("email", "Unauthorized sender")
        self.sent.append({"to": to_email, "name": to_name, "subject": subject, "html": html})
        return f"<msg-{len(self.sent)}>"


class FakeCaptcha:
    def __init__(self):
        self.passing = True

    async def verify(self, token: str | None) -> bool:
        return self.passing and bool(token)


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="identity")
def identity_fixture() -> FakeIdentity:
    return FakeIdentity()


@pytest.fixture(name="storage")
def storage_fixture() -> FakeStorage:
    return FakeStorage()


@pytest.fixture(name="mail")
def mail_fixture() -> FakeMail:
    return FakeMail()


@pytest.fixture(name="captcha")
def captcha_fixture() -> FakeCaptcha:
    return FakeCaptcha()


@pytest.fixture(name="collaborators")
def collaborators_fixture(identity, storage, mail, captcha) -> Collaborators:
    return Collaborators(identity=identity, storage=storage, mail=mail, captcha=captcha)


@pytest.fixture(name="client")
def client_fixture(session: Session, collaborators: Collaborators):
    """Create a test client with the test database session and fake services."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_collaborators] = lambda: collaborators
    app.state.global_limiter = SlidingWindowLimiter(1000, 15 * 60, GLOBAL_MESSAGE)
    app.state.registration_limiter = SlidingWindowLimiter(100, 60 * 60, REGISTRATION_MESSAGE)
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="principal")
def principal_fixture() -> Principal:
    return Principal(id="user-p1", email="a@x.com")


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(identity: FakeIdentity, principal: Principal) -> dict[str, str]:
    """Authorization header for the ``principal`` fixture."""
    token = identity.issue(principal.id, principal.email)
    return {"Authorization": f"Bearer {token}"}
