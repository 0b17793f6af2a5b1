"""Tests for the external service clients, using a mock HTTP transport."""

import asyncio
import json

import httpx
import pytest

from reunion.collaborators import (
    CaptchaClient,
    IdentityClient,
    MailClient,
    StorageClient,
    build_collaborators,
)
from reunion.core.config import Settings
from reunion.core.errors import CollaboratorFailure, Unauthorized

BASE = "https://project.supabase.test"


def run_with(handler, make_client, call):
    """Run ``call(client)`` against a client whose HTTP calls go to ``handler``."""

    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            return await call(make_client(http))

    return asyncio.run(main())


def identity(http):
    return IdentityClient(http, BASE, "anon-key")


def storage(http):
    return StorageClient(http, BASE, "anon-key", "images")


class TestIdentityClient:
    """Tests for IdentityClient."""

    def test_verify_token(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["apikey"] = request.headers["apikey"]
            return httpx.Response(200, json={"id": "user-1", "email": "a@x.com"})

        principal = run_with(handler, identity, lambda c: c.verify_token("tok"))

        assert principal.id == "user-1"
        assert principal.email == "a@x.com"
        assert seen["url"] == f"{BASE}/auth/v1/user"
        assert seen["auth"] == "Bearer tok"
        assert seen["apikey"] == "anon-key"

    @pytest.mark.parametrize("status", [401, 403])
    def test_verify_token_rejected(self, status):
        def handler(request):
            return httpx.Response(status, json={"msg": "invalid JWT"})

        with pytest.raises(Unauthorized):
            run_with(handler, identity, lambda c: c.verify_token("bad"))

    def test_verify_token_service_error(self):
        def handler(request):
            return httpx.Response(503, text="upstream down")

        with pytest.raises(CollaboratorFailure) as excinfo:
            run_with(handler, identity, lambda c: c.verify_token("tok"))
        assert excinfo.value.message == "upstream down"

    def test_verify_token_network_error(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(CollaboratorFailure) as excinfo:
            run_with(handler, identity, lambda c: c.verify_token("tok"))
        assert excinfo.value.service == "identity"

    def test_create_account_pending_confirmation(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "user-1", "email": "a@x.com"})

        account = run_with(handler, identity, lambda c: c.create_account("a@x.com", "pw"))

        assert seen["path"] == "/auth/v1/signup"
        assert seen["body"] == {"email": "a@x.com", "password": "pw"}
        assert account == {"user": {"id": "user-1", "email": "a@x.com"}, "session": None}

    def test_create_account_with_session(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"access_token": "at", "refresh_token": "rt", "user": {"id": "user-1"}},
            )

        account = run_with(handler, identity, lambda c: c.create_account("a@x.com", "pw"))

        assert account["user"] == {"id": "user-1"}
        assert account["session"] == {"access_token": "at", "refresh_token": "rt"}

    def test_create_account_error_message(self):
        def handler(request):
            return httpx.Response(422, json={"msg": "Password should be at least 6 characters"})

        with pytest.raises(CollaboratorFailure) as excinfo:
            run_with(handler, identity, lambda c: c.create_account("a@x.com", "pw"))
        assert excinfo.value.message == "Password should be at least 6 characters"

    def test_password_login(self):
        seen = {}

        def handler(request):
            seen["grant_type"] = request.url.params["grant_type"]
            return httpx.Response(200, json={"access_token": "at"})

        session = run_with(handler, identity, lambda c: c.password_login("a@x.com", "pw"))

        assert session == {"access_token": "at"}
        assert seen["grant_type"] == "password"

    def test_password_login_rejected(self):
        def handler(request):
            return httpx.Response(400, json={"error_description": "Invalid login credentials"})

        with pytest.raises(Unauthorized) as excinfo:
            run_with(handler, identity, lambda c: c.password_login("a@x.com", "bad"))
        assert excinfo.value.message == "Invalid login credentials"


class TestStorageClient:
    """Tests for StorageClient."""

    def test_put_object(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["content_type"] = request.headers["content-type"]
            seen["upsert"] = request.headers["x-upsert"]
            seen["body"] = request.content
            return httpx.Response(200, json={"Key": "images/qrcodes/555-1.png"})

        run_with(handler, storage, lambda c: c.put_object("qrcodes/555-1.png", b"png", "image/png"))

        assert seen["method"] == "POST"
        assert seen["path"] == "/storage/v1/object/images/qrcodes/555-1.png"
        assert seen["content_type"] == "image/png"
        assert seen["upsert"] == "false"
        assert seen["body"] == b"png"

    def test_put_object_failure(self):
        def handler(request):
            return httpx.Response(400, json={"error": "Duplicate", "message": "The resource already exists"})

        with pytest.raises(CollaboratorFailure) as excinfo:
            run_with(handler, storage, lambda c: c.put_object("a.png", b"x", "image/png"))
        assert excinfo.value.message == "The resource already exists"
        assert excinfo.value.service == "storage"

    def test_put_object_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(CollaboratorFailure):
            run_with(handler, storage, lambda c: c.put_object("a.png", b"x", "image/png"))

    def test_public_url(self):
        client = StorageClient(None, BASE + "/", "anon-key", "images")
        assert client.public_url("qrcodes/+1 555.png") == (
            f"{BASE}/storage/v1/object/public/images/qrcodes/%2B1%20555.png"
        )

    def test_list_objects(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=[
                    {"id": "2", "name": "2-b.png", "created_at": "2026-01-02", "metadata": {"size": 20}},
                    {"id": "1", "name": "1-a.png", "created_at": "2026-01-01", "metadata": {"size": 10}},
                    {"id": None, "name": "nested", "metadata": None},
                ],
            )

        objects = run_with(handler, storage, lambda c: c.list_objects("uploads"))

        assert seen["path"] == "/storage/v1/object/list/images"
        assert seen["body"]["prefix"] == "uploads"
        assert seen["body"]["sortBy"] == {"column": "created_at", "order": "desc"}
        assert [o["path"] for o in objects] == ["uploads/2-b.png", "uploads/1-a.png"]
        assert objects[0]["url"] == f"{BASE}/storage/v1/object/public/images/uploads/2-b.png"
        assert objects[0]["size"] == 20


class TestMailClient:
    """Tests for MailClient."""

    def mail(self, http):
        return MailClient(
            http, "https://mail.test/v3/smtp/email", "brevo-key",
            sender_name="Reunion Team", sender_email="team@x.com",
        )

    def test_send(self):
        seen = {}

        def handler(request):
            seen["key"] = request.headers["api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"messageId": "<abc@mail>"})

        message_id = run_with(
            handler, self.mail, lambda c: c.send("a@x.com", "Ana", "Hi", "<p>hi</p>")
        )

        assert message_id == "<abc@mail>"
        assert seen["key"] == "brevo-key"
        assert seen["body"] == {
            "sender": {"name": "Reunion Team", "email": "team@x.com"},
            "to": [{"email": "a@x.com", "name": "Ana"}],
            "subject": "Hi",
            "htmlContent": "<p>hi</p>",
        }

    def test_send_failure(self):
        def handler(request):
            return httpx.Response(401, json={"code": "unauthorized", "message": "Key not found"})

        with pytest.raises(CollaboratorFailure) as excinfo:
            run_with(handler, self.mail, lambda c: c.send("a@x.com", "Ana", "Hi", "x"))
        assert excinfo.value.message == "Key not found"
        assert excinfo.value.service == "email"


class TestCaptchaClient:
    """Tests for CaptchaClient."""

    def captcha(self, http):
        return CaptchaClient(http, "https://captcha.test/siteverify", "secret", min_score=0.5)

    @pytest.mark.parametrize(
        "result, expected",
        [
            ({"success": True, "score": 0.9}, True),
            ({"success": True, "score": 0.5}, True),
            ({"success": True, "score": 0.3}, False),
            ({"success": False, "score": 0.9}, False),
            ({"success": True}, False),
        ],
    )
    def test_verify_policy(self, result, expected):
        def handler(request):
            assert request.url.params["secret"] == "secret"
            assert request.url.params["response"] == "challenge"
            return httpx.Response(200, json=result)

        assert run_with(handler, self.captcha, lambda c: c.verify("challenge")) is expected

    def test_missing_token_not_sent(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert run_with(handler, self.captcha, lambda c: c.verify(None)) is False

    def test_service_error(self):
        def handler(request):
            return httpx.Response(500)

        with pytest.raises(CollaboratorFailure):
            run_with(handler, self.captcha, lambda c: c.verify("challenge"))


class TestBuildCollaborators:
    def test_wires_settings(self):
        settings = Settings(
            supabase_url=BASE,
            supabase_anon_key="anon-key",
            storage_bucket="photos",
            mail_sender_email="team@x.com",
            recaptcha_min_score=0.7,
        )
        collaborators = build_collaborators(httpx.AsyncClient(), settings)

        assert collaborators.storage.bucket == "photos"
        assert collaborators.identity.base_url == BASE
        assert collaborators.mail.sender_email == "team@x.com"
        assert collaborators.captcha.min_score == 0.7
