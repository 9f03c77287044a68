"""Tests for the standard and dynamic middleware: recovery, logging,
security headers, CSRF and authentication."""

import logging

import pytest
from conftest import ALICE_PASSWORD

from snippetbox.app import App
from snippetbox.errors import ConfigurationError
from snippetbox.http.headers import Headers
from snippetbox.http.request import Request
from snippetbox.http.response import Response
from snippetbox.middleware.auth import AUTH_SESSION_KEY, REDIRECT_SESSION_KEY, Authenticator
from snippetbox.middleware.csrf import CSRFMiddleware
from snippetbox.middleware.security_headers import SecurityHeadersConfig
from snippetbox.middleware.sessions import Session
from snippetbox.testing import TestClient, extract_csrf_token

SECURITY_HEADERS = {
    "content-security-policy": (
        "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com"
    ),
    "referrer-policy": "origin-when-cross-origin",
    "x-content-type-options": "nosniff",
    "x-frame-options": "deny",
    "x-xss-protection": "0",
    "server": "snippetbox",
}


def _request(method: str = "GET", path: str = "/") -> Request:
    return Request(
        method=method,
        path=path,
        headers=Headers(()),
        query_string=b"",
        http_version="1.1",
        client=("127.0.0.1", 1234),
        cookies={},
    )


async def _ok(request: Request) -> Response:
    return Response("ok")


async def _login(client: TestClient) -> None:
    page = await client.get("/user/login")
    await client.post(
        "/user/login",
        form={
            "email": "alice@example.com",
            "password": ALICE_PASSWORD,
            "csrf_token": extract_csrf_token(page.text),
        },
    )


# -- Standard chain --


class TestSecurityHeaders:
    @pytest.mark.parametrize("path", ["/ping", "/", "/missing", "/snippet/view/99"])
    async def test_present_on_every_response(self, app: App, path: str) -> None:
        async with TestClient(app) as client:
            response = await client.get(path)
            for name, value in SECURITY_HEADERS.items():
                assert response.header(name) == value

    async def test_present_on_method_not_allowed(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.request("PUT", "/")
            assert response.status == 405
            assert response.header("x-frame-options") == "deny"

    async def test_override_handler_values(self, app: App) -> None:
        @app.route("/framed")
        def framed(request: Request) -> Response:
            return Response("framed").with_header("X-Frame-Options", "sameorigin")

        async with TestClient(app) as client:
            response = await client.get("/framed")
            values = [v for n, v in response.headers if n.lower() == "x-frame-options"]
            assert values == ["deny"]

    async def test_no_hsts_without_tls(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/ping")
            assert response.header("strict-transport-security") is None

    def test_hsts_only_when_configured(self) -> None:
        assert "Strict-Transport-Security" not in SecurityHeadersConfig().as_headers()
        headers = SecurityHeadersConfig(strict_transport_security="max-age=60").as_headers()
        assert headers["Strict-Transport-Security"] == "max-age=60"


class TestRecovery:
    async def test_exception_becomes_500(self, app: App, caplog) -> None:
        @app.route("/boom")
        def boom(request: Request) -> str:
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.ERROR, logger="snippetbox.server"):
            async with TestClient(app) as client:
                response = await client.get("/boom")

        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert "kaboom" not in response.text
        assert response.header("connection") == "close"
        assert response.header("x-frame-options") == "deny"
        assert any("500 GET /boom" in r.message for r in caplog.records)
        assert any(r.exc_info for r in caplog.records)

    async def test_model_failure_on_dynamic_route(self, app: App, snippets) -> None:
        async def broken() -> list:
            raise RuntimeError("database is down")

        snippets.latest = broken
        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 500
            assert response.header("connection") == "close"

    async def test_later_requests_still_served(self, app: App) -> None:
        @app.route("/boom")
        def boom(request: Request) -> str:
            raise ValueError("bad")

        async with TestClient(app) as client:
            assert (await client.get("/boom")).status == 500
            assert (await client.get("/ping")).status == 200


class TestRequestLog:
    async def test_logs_before_dispatch(self, app: App, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="snippetbox.server"):
            async with TestClient(app) as client:
                await client.get("/?page=2")

        messages = [r.getMessage() for r in caplog.records]
        assert "received request ip=127.0.0.1:54321 proto=HTTP/1.1 method=GET uri=/?page=2" in messages

    async def test_logs_unroutable_requests(self, app: App, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="snippetbox.server"):
            async with TestClient(app) as client:
                await client.get("/nowhere")

        assert any("uri=/nowhere" in r.getMessage() for r in caplog.records)


# -- Dynamic chain --


class TestCSRF:
    async def test_missing_token_is_bad_request(self, app: App, users) -> None:
        async with TestClient(app) as client:
            await client.get("/user/signup")
            response = await client.post(
                "/user/signup",
                form={"name": "Bob", "email": "bob@example.com", "password": "validPa$$word"},
            )
            assert response.status == 400
            assert response.text == "Bad Request"
            assert users.inserted == []

    async def test_wrong_token_is_bad_request(self, app: App) -> None:
        async with TestClient(app) as client:
            await client.get("/user/signup")
            response = await client.post("/user/signup", form={"csrf_token": "wrongToken"})
            assert response.status == 400

    async def test_token_from_other_session_is_rejected(self, app: App) -> None:
        async with TestClient(app) as first:
            token = extract_csrf_token((await first.get("/user/signup")).text)
        async with TestClient(app) as second:
            await second.get("/user/signup")
            response = await second.post("/user/signup", form={"csrf_token": token})
            assert response.status == 400

    async def test_post_without_session_is_rejected(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.post("/user/login", form={"csrf_token": "anything"})
            assert response.status == 400

    async def test_header_token_is_accepted(self, app: App) -> None:
        async with TestClient(app) as client:
            token = extract_csrf_token((await client.get("/user/login")).text)
            response = await client.post(
                "/user/login",
                form={"email": "", "password": ""},
                headers={"X-CSRF-Token": token},
            )
            # Past the guard; the handler rejects the empty form
            assert response.status == 422

    async def test_header_token_with_non_form_body(self, app: App, caplog) -> None:
        async with TestClient(app) as client:
            token = extract_csrf_token((await client.get("/user/login")).text)
            with caplog.at_level(logging.ERROR, logger="snippetbox.server"):
                response = await client.post(
                    "/user/login",
                    body=b"{}",
                    headers={"X-CSRF-Token": token, "Content-Type": "application/json"},
                )
            assert response.status == 415
            assert response.text == "Unsupported Media Type"
            assert not any(r.exc_info for r in caplog.records)

    async def test_non_form_body_without_header_token(self, app: App) -> None:
        async with TestClient(app) as client:
            await client.get("/user/login")
            response = await client.post(
                "/user/login",
                body=b"{}",
                headers={"Content-Type": "application/json"},
            )
            assert response.status == 400

    async def test_token_is_stable_within_session(self, app: App) -> None:
        async with TestClient(app) as client:
            first = extract_csrf_token((await client.get("/user/login")).text)
            second = extract_csrf_token((await client.get("/user/signup")).text)
            assert first == second

    async def test_requires_session(self) -> None:
        with pytest.raises(ConfigurationError, match="SessionMiddleware"):
            await CSRFMiddleware()(_request("POST"), _ok)

    async def test_safe_methods_are_not_checked(self) -> None:
        request = _request("GET")
        request.state.session = Session()
        response = await CSRFMiddleware()(request, _ok)
        assert response.text == "ok"
        assert request.state.csrf_token
        assert request.state.session["csrf_token"] == request.state.csrf_token


class TestAuthenticator:
    async def test_known_user(self) -> None:
        request = _request()
        request.state.session = Session(data={AUTH_SESSION_KEY: 1})
        await Authenticator(lambda user_id: True)(request, _ok)
        assert request.state.authenticated is True
        assert request.state.user_id == 1

    async def test_stale_user_is_anonymous(self) -> None:
        request = _request()
        request.state.session = Session(data={AUTH_SESSION_KEY: 1})
        await Authenticator(lambda user_id: False)(request, _ok)
        assert request.state.authenticated is False
        assert request.state.user_id is None

    @pytest.mark.parametrize("stored", [None, 0, -3, "1", True])
    async def test_unusable_ids_skip_the_lookup(self, stored) -> None:
        calls: list[int] = []

        async def exists(user_id: int) -> bool:
            calls.append(user_id)
            return True

        data = {} if stored is None else {AUTH_SESSION_KEY: stored}
        request = _request()
        request.state.session = Session(data=data)
        await Authenticator(exists)(request, _ok)
        assert request.state.authenticated is False
        assert calls == []

    async def test_requires_session(self) -> None:
        with pytest.raises(ConfigurationError, match="SessionMiddleware"):
            await Authenticator(lambda user_id: True)(_request(), _ok)

    async def test_deleted_user_loses_access(self, app: App, users) -> None:
        async with TestClient(app) as client:
            await _login(client)
            assert (await client.get("/account/view")).status == 200

            users.deleted.add(1)
            response = await client.get("/account/view")
            assert response.status == 303
            assert response.header("location") == "/user/login"


class TestRequireAuthentication:
    async def test_protected_pages_are_not_cached(self, app: App) -> None:
        async with TestClient(app) as client:
            await _login(client)
            response = await client.get("/snippet/create")
            assert response.status == 200
            assert any("no-store" in v for n, v in response.headers if n == "cache-control")

    async def test_single_cache_control_when_session_changes(self, app: App) -> None:
        async with TestClient(app) as client:
            await _login(client)
            token = extract_csrf_token((await client.get("/snippet/create")).text)
            response = await client.post(
                "/snippet/create",
                form={"title": "T", "content": "C", "expires": "7", "csrf_token": token},
            )
            assert response.status == 303
            values = [v for n, v in response.headers if n == "cache-control"]
            assert values == ['no-store, no-cache="Set-Cookie"']
            assert response.header("vary") == "Cookie"

    async def test_public_pages_are_cacheable(self, app: App) -> None:
        async with TestClient(app) as client:
            response = await client.get("/about")
            assert not any("no-store" in v for n, v in response.headers if n == "cache-control")

    async def test_post_does_not_replace_remembered_path(self, app: App) -> None:
        async with TestClient(app) as client:
            await client.get("/account/view")
            token = extract_csrf_token((await client.get("/user/login")).text)
            response = await client.post(
                "/account/password/update",
                form={"csrf_token": token},
            )
            assert response.status == 303

            response = await client.post(
                "/user/login",
                form={"email": "alice@example.com", "password": ALICE_PASSWORD, "csrf_token": token},
            )
            assert response.status == 303
            assert response.header("location") == "/account/view"

    async def test_remembered_path_is_used_once(self, app: App) -> None:
        async with TestClient(app) as client:
            await client.get("/account/view")
            await _login(client)
            token = extract_csrf_token((await client.get("/")).text)
            await client.post("/user/logout", form={"csrf_token": token})

            token = extract_csrf_token((await client.get("/user/login")).text)
            response = await client.post(
                "/user/login",
                form={"email": "alice@example.com", "password": ALICE_PASSWORD, "csrf_token": token},
            )
            assert response.header("location") == "/snippet/create"

    def test_redirect_key_name(self) -> None:
        assert REDIRECT_SESSION_KEY == "redirect_path_after_login"
