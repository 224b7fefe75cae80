"""Unit tests for login UIs, the UI registry and the redirect server."""
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
import uvicorn
from fastapi.testclient import TestClient

from cloudfs_auth.auth.login_ui import DirectLogOn, LoginUIRegistry, parse_redirect_parameters
from cloudfs_auth.auth.oauth_callback_server import BrowserLogOn, RedirectServer
from cloudfs_auth.auth.session import LoginRequest
from cloudfs_auth.utils.errors import InvalidArgumentError


class TestParseRedirectParameters:
    def test_query(self):
        url = "http://localhost:8765/box_login?code=abc&state=xyz"
        assert parse_redirect_parameters(url) == {"code": "abc", "state": "xyz"}

    def test_fragment(self):
        url = "http://localhost:8765/cb#access_token=tok&token_type=bearer&expires_in=3600"
        assert parse_redirect_parameters(url) == {
            "access_token": "tok",
            "token_type": "bearer",
            "expires_in": "3600",
        }

    def test_query_and_fragment(self):
        url = "http://localhost/cb?state=s1#code=c1"
        assert parse_redirect_parameters(url) == {"state": "s1", "code": "c1"}

    def test_no_parameters(self):
        assert parse_redirect_parameters("http://localhost/cb") == {}


class TestLoginUIRegistry:
    """Tests for LoginUIRegistry."""

    def test_one_instance_per_provider(self):
        factory = MagicMock(side_effect=lambda: MagicMock())
        registry = LoginUIRegistry({"browser": factory})

        first = registry.get("box", "browser")
        assert registry.get("box", "browser") is first
        assert factory.call_count == 1

        assert registry.get("hubic", "browser") is not first
        assert factory.call_count == 2

    def test_created_lazily(self):
        factory = MagicMock()
        registry = LoginUIRegistry({"browser": factory})

        assert not registry.has_instance("box")
        factory.assert_not_called()
        registry.get("box", "browser")
        assert registry.has_instance("box")

    def test_unknown_kind(self):
        registry = LoginUIRegistry()
        with pytest.raises(InvalidArgumentError) as exc_info:
            registry.get("box", "browser")
        assert exc_info.value.argument == "kind"
        assert "browser" in str(exc_info.value)

    def test_register_factory(self):
        registry = LoginUIRegistry()
        ui = MagicMock()
        registry.register_factory("direct", lambda: ui)
        assert registry.get("webdav", "direct") is ui


class TestDirectLogOn:
    """Tests for the console login form."""

    @pytest.fixture
    def request_(self):
        return LoginRequest(provider_label="WebDAV", account="bob")

    @pytest.mark.asyncio
    async def test_returns_account_and_password(self, request_):
        ui = DirectLogOn(input_func=lambda prompt: "robert", password_func=lambda prompt: "pw")
        assert await ui.authenticate(request_) == {"account": "robert", "password": "pw"}

    @pytest.mark.asyncio
    async def test_defaults_to_requested_account(self, request_):
        ui = DirectLogOn(input_func=lambda prompt: "", password_func=lambda prompt: "pw")
        assert await ui.authenticate(request_) == {"account": "bob", "password": "pw"}

    @pytest.mark.asyncio
    async def test_empty_password_is_abandoned(self, request_):
        ui = DirectLogOn(input_func=lambda prompt: "bob", password_func=lambda prompt: "")
        assert await ui.authenticate(request_) == {}

    @pytest.mark.asyncio
    async def test_eof_is_abandoned(self, request_):
        def closed(prompt):
            raise EOFError

        ui = DirectLogOn(input_func=closed, password_func=lambda prompt: "pw")
        assert await ui.authenticate(request_) == {}


class TestRedirectServer:
    """Tests for RedirectServer routing (no socket is opened)."""

    def test_deliver_routes_by_state(self):
        server = RedirectServer(8765)
        first, second = MagicMock(), MagicMock()
        server.register("s1", first)
        server.register("s2", second)

        assert server.deliver({"code": "c2", "state": "s2"}) is True
        second.assert_called_once_with({"code": "c2", "state": "s2"})
        first.assert_not_called()

        # Each receiver gets at most one redirect
        assert server.deliver({"code": "again", "state": "s2"}) is False

    def test_deliver_unknown_or_missing_state(self):
        server = RedirectServer(8765)
        assert server.deliver({"code": "c"}) is False
        assert server.deliver({"code": "c", "state": "nope"}) is False

    def test_duplicate_state_rejected(self):
        server = RedirectServer(8765)
        server.register("s1", MagicMock())
        with pytest.raises(InvalidArgumentError):
            server.register("s1", MagicMock())

    def test_unregister(self):
        server = RedirectServer(8765)
        receiver = MagicMock()
        server.register("s1", receiver)
        server.unregister("s1")
        assert server.deliver({"state": "s1"}) is False
        receiver.assert_not_called()

    def test_redirect_route(self):
        server = RedirectServer(8765)
        receiver = MagicMock()
        server.register("s1", receiver)
        client = TestClient(server.app)

        response = client.get("/box_login?code=abc&state=s1")
        assert response.status_code == 200
        assert "Authentication Received" in response.text
        receiver.assert_called_once_with({"code": "abc", "state": "s1"})

        response = client.get("/box_login?code=abc&state=unknown")
        assert response.status_code == 400

    def test_redirect_route_with_provider_error(self):
        server = RedirectServer(8765)
        receiver = MagicMock()
        server.register("s1", receiver)
        client = TestClient(server.app)

        response = client.get("/box_login?error=access_denied&state=s1")
        assert response.status_code == 400
        assert "access_denied" in response.text
        receiver.assert_called_once()


class TestRedirectServerLifecycle:
    """Starts a real redirect server on a free local port."""

    @pytest.fixture
    def free_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            return s.getsockname()[1]

    def test_concurrent_start_binds_once(self, free_port):
        server = RedirectServer(free_port, "http://127.0.0.1")
        barrier = threading.Barrier(2)

        def start():
            barrier.wait()
            return server.start()

        config = MagicMock(side_effect=uvicorn.Config)
        try:
            with patch("cloudfs_auth.auth.oauth_callback_server.uvicorn.Config", config):
                with ThreadPoolExecutor(max_workers=2) as executor:
                    results = list(executor.map(lambda _: start(), range(2)))

            assert results == [(True, ""), (True, "")]
            assert config.call_count == 1
            assert server.is_running
        finally:
            server.stop()
        assert not server.is_running

    def test_stop_without_start(self):
        server = RedirectServer(8765)
        server.stop()
        assert not server.is_running


class TestBrowserLogOn:
    """Tests for BrowserLogOn with a server that never binds a socket."""

    @pytest.fixture
    def server(self):
        server = RedirectServer(8765)
        server.start = lambda: (True, "")
        return server

    def _request(self, state="s1"):
        return LoginRequest(
            provider_label="Box",
            account="alice",
            authorization_uri=f"https://account.box.com/api/oauth2/authorize?state={state}",
            redirect_uri="http://localhost:8765/box_login",
            state=state,
        )

    @pytest.mark.asyncio
    async def test_resolves_with_redirect_parameters(self, server):
        def open_browser(uri):
            server.deliver({"code": "abc", "state": "s1"})
            return True

        ui = BrowserLogOn(server, timeout=5, open_browser=open_browser)
        assert await ui.authenticate(self._request()) == {"code": "abc", "state": "s1"}
        assert server._pending == {}

    @pytest.mark.asyncio
    async def test_state_taken_from_authorization_uri(self, server):
        def open_browser(uri):
            server.deliver({"code": "abc", "state": "from-uri"})
            return True

        request = LoginRequest(
            provider_label="Box",
            account="alice",
            authorization_uri="https://example.com/authorize?state=from-uri",
        )
        ui = BrowserLogOn(server, timeout=5, open_browser=open_browser)
        assert (await ui.authenticate(request))["code"] == "abc"

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self, server):
        ui = BrowserLogOn(server, timeout=0.05, open_browser=lambda uri: True)
        assert await ui.authenticate(self._request()) == {}
        assert server._pending == {}

    @pytest.mark.asyncio
    async def test_server_start_failure_returns_empty(self):
        server = RedirectServer(8765)
        server.start = lambda: (False, "Port 8765 is already in use")
        opener = MagicMock()
        ui = BrowserLogOn(server, timeout=5, open_browser=opener)

        assert await ui.authenticate(self._request()) == {}
        opener.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_authorization_uri(self, server):
        ui = BrowserLogOn(server, timeout=5, open_browser=MagicMock())
        with pytest.raises(InvalidArgumentError):
            await ui.authenticate(LoginRequest(provider_label="Box", account="alice"))
