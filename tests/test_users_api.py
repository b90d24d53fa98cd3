import io
import time
from datetime import timedelta

import pytest

from api import create_app
from models import storage
from tests.conftest import PASSWORD

BASE = "/api/v1/users"


def register(client, username="alice", **overrides):
    data = {
        "username": username,
        "email": f"{username}@example.com",
        "fullName": f"{username} Liddell",
        "password": PASSWORD,
        "avatar": (io.BytesIO(b"\x89PNG fake"), "avatar.png"),
    }
    data.update(overrides)
    data = {key: value for key, value in data.items() if value is not None}
    return client.post(f"{BASE}/register", data=data, content_type="multipart/form-data")


def login(client, username="alice", password=PASSWORD):
    return client.post(f"{BASE}/login", json={"username": username, "password": password})


def test_register_returns_envelope_without_secrets(client):
    res = register(client)
    assert res.status_code == 201
    body = res.get_json()
    assert body["statusCode"] == 201
    assert body["success"] is True
    assert body["data"]["username"] == "alice"
    assert body["data"]["fullName"] == "alice liddell"
    assert "password" not in res.get_data(as_text=True).lower()
    assert "refreshtoken" not in res.get_data(as_text=True).lower()


def test_register_duplicate_is_conflict(client):
    register(client)
    res = register(client, email="different@example.com")
    assert res.status_code == 409
    body = res.get_json()
    assert body["success"] is False
    assert body["data"] is None


def test_register_requires_avatar(client):
    res = register(client, avatar=None)
    assert res.status_code == 400
    assert res.get_json()["message"] == "Avatar is required"


def test_register_validates_fields(client):
    res = client.post(f"{BASE}/register", data={"username": "alice"}, content_type="multipart/form-data")
    assert res.status_code == 400
    body = res.get_json()
    assert body["success"] is False
    assert "email" in body["errors"]


def test_login_sets_cookies_and_returns_tokens(client):
    register(client)
    res = login(client)
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["accessToken"] and data["refreshToken"]
    assert "refreshToken" not in data["user"]

    cookies = res.headers.getlist("Set-Cookie")
    assert any(c.startswith("accessToken=") and "HttpOnly" in c and "SameSite=Strict" in c for c in cookies)
    assert any(c.startswith("refreshToken=") and "HttpOnly" in c for c in cookies)
    assert client.get_cookie("accessToken").value == data["accessToken"]


def test_login_errors(client):
    register(client)
    assert login(client, password="wrong-password").status_code == 401
    assert login(client, username="nobody").status_code == 404
    res = client.post(f"{BASE}/login", json={"password": PASSWORD})
    assert res.status_code == 400


def test_me_requires_token(client):
    res = client.get(f"{BASE}/me")
    assert res.status_code == 401
    assert res.get_json()["success"] is False


def test_me_accepts_bearer_header(app, client):
    register(client)
    access = login(client).get_json()["data"]["accessToken"]
    res = app.test_client().get(f"{BASE}/me", headers={"Authorization": f"Bearer {access}"})
    assert res.status_code == 200
    assert res.get_json()["data"]["email"] == "alice@example.com"


def test_me_rejects_refresh_token_as_bearer(app, client):
    register(client)
    refresh = login(client).get_json()["data"]["refreshToken"]
    res = app.test_client().get(f"{BASE}/me", headers={"Authorization": f"Bearer {refresh}"})
    assert res.status_code == 401


def test_refresh_rotation_over_http(client):
    register(client)
    first = login(client).get_json()["data"]["refreshToken"]

    res = client.post(f"{BASE}/refresh-token", json={"refreshToken": first})
    assert res.status_code == 200
    second = res.get_json()["data"]["refreshToken"]
    assert second != first
    assert client.get_cookie("refreshToken").value == second

    replay = client.post(f"{BASE}/refresh-token", json={"refreshToken": first})
    assert replay.status_code == 401

    # without a body the cookie is used
    assert client.post(f"{BASE}/refresh-token").status_code == 200


def test_refresh_without_any_token(app):
    res = app.test_client().post(f"{BASE}/refresh-token")
    assert res.status_code == 401


def test_logout_clears_cookies_and_revokes(client):
    register(client)
    data = login(client).get_json()["data"]

    res = client.post(f"{BASE}/logout")
    assert res.status_code == 200
    assert client.get_cookie("accessToken") is None
    assert client.get_cookie("refreshToken") is None

    headers = {"Authorization": f"Bearer {data['accessToken']}"}
    assert client.post(f"{BASE}/logout", headers=headers).status_code == 200

    res = client.post(f"{BASE}/refresh-token", json={"refreshToken": data["refreshToken"]})
    assert res.status_code == 401


def test_change_password(client):
    register(client)
    login(client)
    res = client.post(f"{BASE}/change-password", json={"oldPassword": PASSWORD, "newPassword": "next-pass-123"})
    assert res.status_code == 200
    assert login(client).status_code == 401
    assert login(client, password="next-pass-123").status_code == 200


def test_change_password_errors(client):
    register(client)
    login(client)
    res = client.post(f"{BASE}/change-password", json={"oldPassword": "nope", "newPassword": "next-pass-123"})
    assert res.status_code == 401
    res = client.post(f"{BASE}/change-password", json={"oldPassword": PASSWORD})
    assert res.status_code == 400


def test_update_account_details(client):
    register(client)
    register(client, username="bob")
    login(client)

    res = client.patch(f"{BASE}/me", json={"fullName": "Alice Cooper", "email": "cooper@example.com"})
    assert res.status_code == 200
    assert res.get_json()["data"]["fullName"] == "alice cooper"
    assert res.get_json()["data"]["email"] == "cooper@example.com"

    assert client.patch(f"{BASE}/me", json={"email": "bob@example.com"}).status_code == 409
    assert client.patch(f"{BASE}/me", json={}).status_code == 400


def test_update_avatar_and_cover(client):
    register(client)
    login(client)
    old_avatar = client.get(f"{BASE}/me").get_json()["data"]["avatar"]

    res = client.patch(
        f"{BASE}/me/avatar",
        data={"avatar": (io.BytesIO(b"new avatar"), "new.png")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 200
    new_avatar = res.get_json()["data"]["avatar"]
    assert new_avatar != old_avatar
    assert client.get(new_avatar).data == b"new avatar"

    res = client.patch(
        f"{BASE}/me/cover",
        data={"coverImage": (io.BytesIO(b"cover"), "cover.jpg")},
        content_type="multipart/form-data",
    )
    assert res.status_code == 200
    assert res.get_json()["data"]["coverImage"].startswith("/media/")

    res = client.patch(f"{BASE}/me/cover", data={}, content_type="multipart/form-data")
    assert res.status_code == 400


def test_channel_profile_over_http(app, client):
    register(client, username="studio")
    fans = []
    for name in ("ann", "ben", "cat"):
        fan = app.test_client()
        register(fan, username=name)
        login(fan, username=name)
        assert fan.post(f"{BASE}/channel/studio/subscription").status_code == 200
        fans.append(fan)

    res = fans[0].get(f"{BASE}/channel/Studio")
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data == {
        "fullName": "studio liddell",
        "email": "studio@example.com",
        "avatar": data["avatar"],
        "coverImage": "",
        "subscriberCount": 3,
        "subscribedToCount": 0,
        "isSubscribed": True,
    }

    assert fans[0].delete(f"{BASE}/channel/studio/subscription").status_code == 200
    data = fans[0].get(f"{BASE}/channel/studio").get_json()["data"]
    assert data["subscriberCount"] == 2
    assert data["isSubscribed"] is False

    assert fans[0].get(f"{BASE}/channel/ghost").status_code == 404


def test_unknown_route_uses_envelope(client):
    res = client.get("/api/v1/nope")
    assert res.status_code == 404
    assert res.get_json()["success"] is False


def test_health(client):
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.get_json()["database"] == "ok"


@pytest.fixture
def short_lived_client(tmp_path):
    app = create_app(
        "testing",
        {"MEDIA_ROOT": str(tmp_path / "media"), "ACCESS_TOKEN_EXPIRES": timedelta(seconds=2)},
    )
    yield app.test_client()
    storage.close()
    storage.drop_all()


def test_session_lifecycle_end_to_end(short_lived_client):
    client = short_lived_client
    assert register(client).status_code == 201
    refresh = login(client).get_json()["data"]["refreshToken"]

    res = client.get(f"{BASE}/me")
    assert res.status_code == 200
    data = res.get_json()["data"]
    assert data["fullName"] == "alice liddell"
    assert data["email"] == "alice@example.com"
    assert not any("password" in key.lower() for key in data)

    time.sleep(3)
    assert client.get(f"{BASE}/me").status_code == 401

    res = client.post(f"{BASE}/refresh-token", json={"refreshToken": refresh})
    assert res.status_code == 200
    pair = res.get_json()["data"]
    assert pair["refreshToken"] != refresh

    res = client.get(f"{BASE}/me", headers={"Authorization": f"Bearer {pair['accessToken']}"})
    assert res.status_code == 200
