import os
import re

# Keep Settings() away from prod validation regardless of the developer's shell.
os.environ["ENV"] = "test"

from contextlib import contextmanager

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from vidhub.core.base import Base
from vidhub.core.config import Settings
from vidhub.core.rate_limit import limiter
from vidhub.core.security import TokenService, hash_password

# Import models so they register with SQLAlchemy metadata.
from vidhub.models.comment import Comment  # noqa: F401
from vidhub.models.community_post import CommunityPost  # noqa: F401
from vidhub.models.follow import Follow  # noqa: F401
from vidhub.models.like import Like  # noqa: F401
from vidhub.models.playlist import Playlist, PlaylistVideo  # noqa: F401
from vidhub.models.user import User
from vidhub.models.video import Video
from vidhub.models.watch_history import WatchHistory  # noqa: F401

from vidhub.core.database import get_db
from vidhub.main import create_app

TEST_PASSWORD = "Password1"
_CODE_RE = re.compile(r"\b(\d{6})\b")


@pytest.fixture(scope="session")
def db_engine():
    # In-memory SQLite for fast, isolated tests.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture()
def db_session(db_engine):
    # Because we use an in-memory SQLite DB with StaticPool, the DB persists
    # across tests. Reset schema per test to avoid cross-test coupling.
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def settings():
    s = Settings()
    s.ENV = "test"
    s.JWT_ACCESS_SECRET = "test_access_secret"
    s.JWT_REFRESH_SECRET = "test_refresh_secret"
    s.JWT_ACCESS_EXPIRY = "15m"
    s.JWT_REFRESH_EXPIRY = "10d"
    s.EMAIL_ENABLED = True
    s.EMAIL_PROVIDER = "resend"
    s.S3_BUCKET_NAME = "test-bucket"
    s.S3_PREFIX = "media"
    s.AWS_REGION = "us-east-1"
    s.MEDIA_BASE_URL = "https://cdn.example.test"
    s.ENABLE_RATE_LIMITING = False
    s.PASSWORD_MIN_LENGTH = 6
    s.VERIFICATION_CODE_TTL_MINUTES = 15
    return s


@pytest.fixture()
def tokens(settings):
    return TokenService(settings)


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """
    Capture outgoing code emails instead of calling a provider.
    """
    from vidhub.services import verification

    sent: list[dict] = []

    def fake_send_email(settings, to_email, subject, body):
        sent.append({"to": to_email, "subject": subject, "body": body})
        return "msg_test_123"

    monkeypatch.setattr(verification, "send_email", fake_send_email)
    return sent


def _last_code(outbox: list[dict], to_email: str) -> str:
    for msg in reversed(outbox):
        if msg["to"] == to_email:
            m = _CODE_RE.search(msg["body"])
            assert m, "no code in email body"
            return m.group(1)
    raise AssertionError(f"no email sent to {to_email}")


@pytest.fixture()
def code_for(outbox):
    """
    Latest 6-digit code emailed to an address.
    """
    return lambda email: _last_code(outbox, email)


class FakeS3Client:
    def __init__(self):
        self.deleted: list[str] = []
        self.fail_deletes = False

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn):  # noqa: N803
        key = Params.get("Key", "")
        return f"https://example.invalid/presigned/{ClientMethod}?key={key}"

    def delete_object(self, Bucket, Key):  # noqa: N803
        if self.fail_deletes:
            raise ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, "DeleteObject")
        self.deleted.append(Key)
        return {"ok": True}


@pytest.fixture(autouse=True)
def fake_s3(monkeypatch):
    """
    Stub the S3 client used by vidhub.services.storage so tests never require AWS creds/network.
    """
    from vidhub.services import storage

    client = FakeS3Client()
    monkeypatch.setattr(storage, "_client", lambda settings: client)
    return client


@pytest.fixture()
def app(settings, db_engine, db_session):
    fastapi_app = create_app(settings, engine=db_engine)

    def override_get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    limiter.reset()
    limiter.enabled = False


def _make_user(db_session, *, username: str, email: str, name: str | None = None, verified: bool = True) -> User:
    user = User(
        username=username,
        email=email,
        name=name or username.title(),
        profile_image=None,
        password_hash=hash_password(TEST_PASSWORD),
        is_verified=verified,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def users(db_session):
    """
    Two distinct verified users for ownership / isolation tests.
    """
    user_a = _make_user(db_session, username="alice", email="alice@example.com", name="Alice")
    user_b = _make_user(db_session, username="bob", email="bob@example.com", name="Bob")
    return user_a, user_b


@pytest.fixture()
def anon_client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def client_for(app, tokens):
    """
    Context manager to create a client authenticated (bearer) as an arbitrary user.

    Usage:
        with client_for(user) as c:
            ...
    """

    @contextmanager
    def _client_for(user: User):
        with TestClient(app) as c:
            c.headers.update({"Authorization": f"Bearer {tokens.issue_access_token(user)}"})
            yield c

    return _client_for


@pytest.fixture()
def client(client_for, users):
    """
    Default client authenticated as user_a.
    """
    user_a, _ = users
    with client_for(user_a) as c:
        yield c


def _make_video(db_session, owner: User, *, title: str = "Clip", published: bool = True, views: int = 0, **extra) -> Video:
    prefix = f"media/users/{owner.id}"
    video = Video(
        owner_id=owner.id,
        title=title,
        description=extra.pop("description", f"{title} description"),
        video_key=f"{prefix}/video/{title}.mp4",
        video_url=f"https://cdn.example.test/{prefix}/video/{title}.mp4",
        thumbnail_key=f"{prefix}/thumbnail/{title}.png",
        thumbnail_url=f"https://cdn.example.test/{prefix}/thumbnail/{title}.png",
        duration=extra.pop("duration", 10.0),
        views=views,
        is_published=published,
    )
    db_session.add(video)
    db_session.commit()
    db_session.refresh(video)
    return video


@pytest.fixture()
def make_user(db_session):
    return lambda **kw: _make_user(db_session, **kw)


@pytest.fixture()
def make_video(db_session):
    return lambda owner, **kw: _make_video(db_session, owner, **kw)
