import io

import pytest
from werkzeug.datastructures import FileStorage

from api import create_app
from models import storage

PASSWORD = "s3cret-pass"


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", {"MEDIA_ROOT": str(tmp_path / "media")})
    yield app
    storage.close()
    storage.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_service(app):
    return app.extensions["auth_service"]


@pytest.fixture
def account_service(app):
    return app.extensions["account_service"]


@pytest.fixture
def channel_profiles(app):
    return app.extensions["channel_profiles"]


def upload(name="avatar.png", content=b"\x89PNG\r\n\x1a\nfake-image"):
    return FileStorage(stream=io.BytesIO(content), filename=name, content_type="image/png")


@pytest.fixture
def make_user(auth_service):
    """Register a user through the service and return its public view."""
    def _make(username, email=None, full_name=None, password=PASSWORD, cover=False):
        return auth_service.register(
            username=username,
            email=email or f"{username}@example.com",
            full_name=full_name or f"{username} tester",
            password=password,
            avatar=upload(),
            cover_image=upload("cover.jpg") if cover else None,
        )

    return _make
