import itertools
from functools import lru_cache
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth import hash_password, create_access_token
from config import load_settings
from database import Base, get_db
from dependencies import get_storage
from main import create_app
from models import User, Album, MediaItem
from services.storage import UploadResult, resource_type_for

TEST_PASSWORD = "password123"


@lru_cache(maxsize=None)
def hashed_test_password() -> str:
    """bcrypt は遅いため1回だけハッシュ化して使い回す"""
    return hash_password(TEST_PASSWORD)


def make_fake_upload():
    """Cloudinary アップロードの代わりに連番の公開IDを返す"""
    counter = itertools.count(1)

    def _upload(content, mime_type):
        n = next(counter)
        resource_type = resource_type_for(mime_type)
        is_video = resource_type == "video"
        return UploadResult(
            public_id=f"memories-album/test_{n}",
            secure_url=f"https://res.cloudinary.com/test/{resource_type}/upload/test_{n}",
            resource_type=resource_type,
            width=800,
            height=600,
            duration=10.0 if is_video else None,
            thumbnail_url=f"https://res.cloudinary.com/test/video/upload/thumb_{n}.jpg" if is_video else None,
        )

    return _upload


@pytest.fixture
def settings():
    return load_settings("test", {
        "TEST_DATABASE_URL": "sqlite://",
        "TEST_JWT_SECRET": "test-secret-key",
        "TEST_JWT_EXPIRES_IN": "1h",
    })


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def mock_storage():
    storage = MagicMock()
    storage.upload.side_effect = make_fake_upload()
    return storage


@pytest.fixture
def app(settings, session_factory, mock_storage):
    app = create_app(settings, storage=mock_storage)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: mock_storage
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    def _make_user(username="testuser", email=None):
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password=hashed_test_password(),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_album(db_session):
    def _make_album(owner, name="Test Album", is_public=False):
        album = Album(name=name, description="Test Description", owner_id=owner.id, is_public=is_public)
        db_session.add(album)
        db_session.commit()
        db_session.refresh(album)
        return album

    return _make_album


@pytest.fixture
def make_media_item(db_session):
    counter = itertools.count(1)

    def _make_media_item(album, uploader, media_type="image"):
        n = next(counter)
        media_item = MediaItem(
            type=media_type,
            cloudinary_public_id=f"memories-album/existing_{n}",
            cloudinary_url=f"https://res.cloudinary.com/test/{media_type}/upload/existing_{n}",
            title=f"Media {n}",
            uploader_id=uploader.id,
        )
        album.media_items.append(media_item)
        db_session.commit()
        db_session.refresh(media_item)
        return media_item

    return _make_media_item


@pytest.fixture
def auth_headers(settings):
    def _auth_headers(user):
        token = create_access_token(user.id, settings)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
