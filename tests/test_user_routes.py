"""
Unit tests for the /api/user and /api/ping routes
"""

import base64
import os

from conftest import auth_headers, make_image_bytes, register
from storeback.core.security import decode_token
from storeback.models.user import User


class TestPing:
    def test_ping(self, client):
        response = client.get("/api/ping")
        assert response.status_code == 200
        assert response.json() == {"message": "Server is up and running"}

    def test_root(self, client):
        assert client.get("/").json() == {"status": "ok"}


class TestRegister:
    def test_register_then_login(self, client, storage):
        response = register(client)
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "User registered successfully"
        assert decode_token(data["token"])["name"] == "alice"

        login = client.post("/api/user/login", data={"username": "alice", "password": "pw123"})
        assert login.status_code == 200
        assert decode_token(login.json()["token"])["sub"] == decode_token(data["token"])["sub"]

    def test_register_with_base64_photo(self, client, db_session):
        encoded = base64.b64encode(make_image_bytes("JPEG")).decode()
        response = client.post("/api/user/register", data={
            "username": "carol",
            "password": "pw",
            "phone": "123",
            "email": "c@x.com",
            "photo_base64": encoded,
        })
        assert response.status_code == 200
        user = db_session.query(User).filter(User.username == "carol").first()
        assert user.profile_picture.startswith("profile_pictures/")
        assert user.profile_picture.endswith(".jpg")

    def test_missing_fields_create_nothing(self, client, db_session, storage):
        for missing in ("username", "password", "phone", "email"):
            data = {"username": "dave", "password": "pw", "phone": "1", "email": "d@x.com"}
            data.pop(missing)
            files = {"photo": ("me.png", make_image_bytes(), "image/png")}
            response = client.post("/api/user/register", data=data, files=files)
            assert response.status_code == 400, missing
            assert response.json()["error"] == "ValidationError"

        assert db_session.query(User).count() == 0
        assert not os.path.exists(storage.root)

    def test_missing_photo(self, client, db_session):
        response = client.post("/api/user/register", data={
            "username": "dave", "password": "pw", "phone": "1", "email": "d@x.com"
        })
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"
        assert db_session.query(User).count() == 0

    def test_invalid_email(self, client):
        response = register(client, email="not-an-email")
        assert response.status_code == 400
        assert response.json()["details"]

    def test_photo_must_be_an_image(self, client, db_session):
        files = {"photo": ("me.png", b"plain text", "image/png")}
        data = {"username": "dave", "password": "pw", "phone": "1", "email": "d@x.com"}
        response = client.post("/api/user/register", data=data, files=files)
        assert response.status_code == 400
        assert db_session.query(User).count() == 0

    def test_duplicate_username(self, client, alice_token, storage):
        stored_before = os.listdir(os.path.join(storage.root, "profile_pictures"))
        response = register(client, username="ALICE")
        assert response.status_code == 409
        assert response.json()["error"] == "Conflict"
        assert os.listdir(os.path.join(storage.root, "profile_pictures")) == stored_before


class TestLogin:
    def test_wrong_password(self, client, alice_token):
        response = client.post("/api/user/login", data={"username": "alice", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["error"] == "InvalidCredentials"
        assert "token" not in response.json()

    def test_unknown_user(self, client):
        response = client.post("/api/user/login", data={"username": "ghost", "password": "pw"})
        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_missing_fields(self, client):
        response = client.post("/api/user/login", data={"username": "alice"})
        assert response.status_code == 400


class TestProfile:
    def test_requires_token(self, client):
        response = client.get("/api/user/profile")
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_rejects_garbage_token(self, client):
        response = client.get("/api/user/profile", headers=auth_headers("not.a.token"))
        assert response.status_code == 401

    def test_get_profile(self, client, alice_token):
        response = client.get("/api/user/profile", headers=auth_headers(alice_token))
        assert response.status_code == 200
        data = response.json()
        assert data["userName"] == "alice"
        assert data["phoneNumber"] == "555"
        assert data["email"] == "a@x.com"
        assert data["profilePicture"].startswith("profile_pictures/")

    def test_no_change(self, client, alice_token):
        response = client.put("/api/user/profile", data={"phone": ""}, headers=auth_headers(alice_token))
        assert response.status_code == 200
        assert response.json() == {"message": "No changes"}

    def test_update_phone_and_email_only(self, client, alice_token):
        before = client.get("/api/user/profile", headers=auth_headers(alice_token)).json()
        response = client.put(
            "/api/user/profile",
            data={"phone": "999", "email": "new@x.com"},
            headers=auth_headers(alice_token),
        )
        assert response.status_code == 200
        after = client.get("/api/user/profile", headers=auth_headers(alice_token)).json()
        assert after["phoneNumber"] == "999"
        assert after["email"] == "new@x.com"
        assert after["profilePicture"] == before["profilePicture"]

    def test_change_password(self, client, alice_token):
        response = client.put(
            "/api/user/profile",
            data={"old_password": "pw123", "new_password": "better"},
            headers=auth_headers(alice_token),
        )
        assert response.status_code == 200
        assert client.post("/api/user/login", data={"username": "alice", "password": "better"}).status_code == 200
        assert client.post("/api/user/login", data={"username": "alice", "password": "pw123"}).status_code == 401

    def test_change_password_wrong_old(self, client, alice_token):
        response = client.put(
            "/api/user/profile",
            data={"old_password": "wrong", "new_password": "better", "phone": "111"},
            headers=auth_headers(alice_token),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidCredentials"
        profile = client.get("/api/user/profile", headers=auth_headers(alice_token)).json()
        assert profile["phoneNumber"] == "555"

    def test_new_password_without_old(self, client, alice_token):
        response = client.put(
            "/api/user/profile",
            data={"new_password": "better"},
            headers=auth_headers(alice_token),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_replace_photo_deletes_previous_file(self, client, alice_token, storage):
        old_path = client.get("/api/user/profile", headers=auth_headers(alice_token)).json()["profilePicture"]
        assert storage.exists(old_path)

        files = {"photo": ("new.png", make_image_bytes(color=(0, 0, 255)), "image/png")}
        response = client.put("/api/user/profile", files=files, headers=auth_headers(alice_token))
        assert response.status_code == 200

        new_path = client.get("/api/user/profile", headers=auth_headers(alice_token)).json()["profilePicture"]
        assert new_path != old_path
        assert storage.exists(new_path)
        assert not storage.exists(old_path)

    def test_upload_profile_picture(self, client, alice_token, storage):
        files = {"photo": ("new.png", make_image_bytes(), "image/png")}
        response = client.post("/api/user/profile-picture", files=files, headers=auth_headers(alice_token))
        assert response.status_code == 200
        assert storage.exists(response.json()["profilePicture"])


class TestLogoutAndDelete:
    def test_logout_keeps_token_valid(self, client, alice_token):
        response = client.post("/api/user/logout", headers=auth_headers(alice_token))
        assert response.status_code == 200
        assert response.json() == {"message": "Logged out"}
        # No server-side revocation
        assert client.get("/api/user/profile", headers=auth_headers(alice_token)).status_code == 200

    def test_delete_account(self, client, alice_token, storage, db_session):
        picture = client.get("/api/user/profile", headers=auth_headers(alice_token)).json()["profilePicture"]
        files = {"image": ("w.png", make_image_bytes(), "image/png")}
        product = client.post(
            "/api/product",
            data={"name": "Widget", "description": "Useful", "price": "9.99"},
            files=files,
            headers=auth_headers(alice_token),
        ).json()

        response = client.delete("/api/user/delete", headers=auth_headers(alice_token))
        assert response.status_code == 200
        assert response.json() == {"message": "Account deleted"}

        assert db_session.query(User).count() == 0
        assert not storage.exists(picture)
        assert not storage.exists(product["image"])
        # The token still decodes but no longer maps to a user
        assert client.get("/api/user/profile", headers=auth_headers(alice_token)).status_code == 401

    def test_delete_account_via_post(self, client, alice_token):
        response = client.post("/api/user/delete", headers=auth_headers(alice_token))
        assert response.status_code == 200
