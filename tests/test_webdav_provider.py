"""Unit tests for the WebDAV provider."""
import httpx
import pytest

from cloudfs_auth.auth.credential_store import CredentialStore
from cloudfs_auth.auth.login_ui import LoginUI, LoginUIRegistry
from cloudfs_auth.auth.orchestrator import LoginOrchestrator
from cloudfs_auth.providers.webdav import WebDAVProvider
from cloudfs_auth.utils.errors import (
    AuthenticationError,
    InvalidArgumentError,
    ProviderRejectedError,
    RefreshRejectedError,
)

BASE_ADDRESS = "https://dav.example.com/remote.php/webdav"


class TestWebDAVProvider:
    """Tests for WebDAVProvider."""

    @pytest.fixture
    def provider(self):
        return WebDAVProvider(BASE_ADDRESS)

    @pytest.mark.parametrize("base_address", [None, ""])
    def test_base_address_required(self, base_address):
        with pytest.raises(InvalidArgumentError) as exc_info:
            WebDAVProvider(base_address)
        assert exc_info.value.argument == "base_address"

    def test_identity(self, provider):
        assert provider.name == "webdav"
        assert provider.ui_kind == "direct"
        assert provider.credential_fields == ("user_name", "password")
        assert provider.authorization_uri("bob", "state") is None

    def test_parameters_from_code(self, provider):
        assert provider.parameters_from_code("bob,secret") == {"account": "bob", "password": "secret"}
        # Only the first comma separates
        assert provider.parameters_from_code("bob,se,cret") == {"account": "bob", "password": "se,cret"}
        assert provider.parameters_from_code("no-comma") == {}

    def test_has_usable_parameters(self, provider):
        assert provider.has_usable_parameters({"account": "bob", "password": "p"})
        assert not provider.has_usable_parameters({"account": "bob", "password": ""})
        assert not provider.has_usable_parameters({})

    @pytest.mark.asyncio
    async def test_refresh_reuses_credential(self, provider):
        session = await provider.refresh_async({"user_name": "bob", "password": "p"})
        assert session.refresh_credential == {"user_name": "bob", "password": "p"}
        assert session.access_token is None

    @pytest.mark.asyncio
    async def test_refresh_incomplete_credential(self, provider):
        with pytest.raises(RefreshRejectedError):
            await provider.refresh_async({"password": "p"})

    @pytest.mark.asyncio
    async def test_authenticate(self, provider):
        session = await provider.authenticate_async({"account": "bob", "password": "p"})
        assert session.refresh_credential == {"user_name": "bob", "password": "p"}

        with pytest.raises(ProviderRejectedError):
            await provider.authenticate_async({"account": "bob"})

    @pytest.mark.asyncio
    async def test_create_client_uses_basic_auth(self, provider):
        session = await provider.authenticate_async({"account": "bob", "password": "p"})
        client = provider.create_client(session)
        try:
            assert str(client.base_url).startswith(BASE_ADDRESS)
            assert isinstance(client.auth, httpx.BasicAuth)
        finally:
            await client.aclose()


class NeverCalledUI(LoginUI):
    async def authenticate(self, request):
        raise AssertionError("login form must not be shown")


class TestWebDAVLogin:
    """WebDAV logins through the orchestrator."""

    @pytest.fixture
    def orchestrator(self, settings):
        provider = WebDAVProvider(BASE_ADDRESS)
        store = CredentialStore(settings, provider.name, provider.credential_fields, "pw")
        registry = LoginUIRegistry({"direct": NeverCalledUI})
        return LoginOrchestrator(provider, store, registry)

    @pytest.mark.asyncio
    async def test_login_with_code(self, orchestrator):
        client = await orchestrator.login("bob", code="bob,secret")
        await client.aclose()

        assert orchestrator.store.load("bob").fields == {"user_name": "bob", "password": "secret"}

        # Second login is served from the store
        client = await orchestrator.login("bob")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_code_fails(self, orchestrator):
        with pytest.raises(AuthenticationError) as exc_info:
            await orchestrator.login("bob", code="missing-password")
        assert exc_info.value.auth_uri is None
        assert orchestrator.store.load("bob") is None
