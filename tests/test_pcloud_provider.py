"""Unit tests for the pCloud provider, using an httpx mock transport."""
import httpx
import pytest

from cloudfs_auth.auth.session import AuthSession
from cloudfs_auth.providers.pcloud import PCLOUD_API_URI, PCloudProvider
from cloudfs_auth.utils.errors import (
    ProviderRejectedError,
    RefreshRejectedError,
    TransientProviderError,
)


class ApiEndpoint:
    """Records API requests and answers with a canned response."""

    def __init__(self, status=200, payload=None, error=None):
        self.status = status
        self.payload = payload if payload is not None else {"result": 0}
        self.error = error
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status, json=self.payload)

    @property
    def last_params(self):
        return dict(self.requests[-1].url.params)


def _provider(endpoint):
    return PCloudProvider(
        http_client_factory=lambda: httpx.AsyncClient(
            base_url=PCLOUD_API_URI, transport=httpx.MockTransport(endpoint)
        )
    )


class TestPCloudProvider:
    """Tests for PCloudProvider."""

    def test_identity(self):
        provider = PCloudProvider()
        assert provider.name == "pcloud"
        assert provider.label == "pCloud"
        assert provider.ui_kind == "direct"
        assert provider.credential_fields == ("auth_token",)
        assert provider.parameters_from_code("bob,secret") == {"account": "bob", "password": "secret"}

    @pytest.mark.asyncio
    async def test_login_exchanges_password_for_token(self):
        endpoint = ApiEndpoint(payload={"result": 0, "auth": "tok"})

        session = await _provider(endpoint).authenticate_async({"account": "bob", "password": "pw"})

        assert session.access_token == "tok"
        # Only the token is cached, never the password
        assert session.refresh_credential == {"auth_token": "tok"}
        assert endpoint.requests[-1].url.path == "/userinfo"
        assert endpoint.last_params == {
            "getauth": "1",
            "logout": "1",
            "username": "bob",
            "password": "pw",
        }

    @pytest.mark.asyncio
    async def test_api_error_result_is_rejected(self):
        endpoint = ApiEndpoint(payload={"result": 2000, "error": "Log in failed."})

        with pytest.raises(ProviderRejectedError) as exc_info:
            await _provider(endpoint).authenticate_async({"account": "bob", "password": "bad"})

        assert exc_info.value.error_code == "2000"
        assert "Log in failed." in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_password_sends_no_request(self):
        endpoint = ApiEndpoint()
        with pytest.raises(ProviderRejectedError):
            await _provider(endpoint).authenticate_async({"account": "bob"})
        assert endpoint.requests == []

    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        endpoint = ApiEndpoint(status=503)
        with pytest.raises(TransientProviderError):
            await _provider(endpoint).authenticate_async({"account": "bob", "password": "pw"})

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self):
        endpoint = ApiEndpoint(error=httpx.ConnectError("refused"))
        with pytest.raises(TransientProviderError):
            await _provider(endpoint).authenticate_async({"account": "bob", "password": "pw"})

    @pytest.mark.asyncio
    async def test_refresh_reuses_token_without_request(self):
        endpoint = ApiEndpoint()

        session = await _provider(endpoint).refresh_async({"auth_token": "tok"})

        assert session.access_token == "tok"
        assert session.refresh_credential == {"auth_token": "tok"}
        assert endpoint.requests == []

    @pytest.mark.asyncio
    async def test_refresh_without_token_is_rejected(self):
        with pytest.raises(RefreshRejectedError):
            await _provider(ApiEndpoint()).refresh_async({})

    @pytest.mark.asyncio
    async def test_revoke_logs_token_out(self):
        endpoint = ApiEndpoint(payload={"result": 0, "auth_deleted": True})

        await _provider(endpoint).revoke_async({"auth_token": "tok"})

        assert endpoint.requests[-1].url.path == "/logout"
        assert endpoint.last_params == {"auth": "tok"}

    @pytest.mark.asyncio
    async def test_revoke_without_token_is_noop(self):
        endpoint = ApiEndpoint()
        await _provider(endpoint).revoke_async({})
        assert endpoint.requests == []

    @pytest.mark.asyncio
    async def test_create_client(self):
        client = PCloudProvider().create_client(AuthSession("tok", {"auth_token": "tok"}))
        try:
            assert str(client.base_url).startswith(PCLOUD_API_URI)
            assert client.params["auth"] == "tok"
        finally:
            await client.aclose()
