"""Centralized constants for CloudFS gateway authentication."""


class Parameters:
    """Standard OAuth 2.0 request and response parameter names."""

    RESPONSE_TYPE = "response_type"
    GRANT_TYPE = "grant_type"
    CLIENT_ID = "client_id"
    CLIENT_SECRET = "client_secret"
    REDIRECT_URI = "redirect_uri"
    SCOPE = "scope"
    STATE = "state"
    CODE = "code"
    REFRESH_TOKEN = "refresh_token"
    USERNAME = "username"
    PASSWORD = "password"
    ERROR = "error"
    ERROR_DESCRIPTION = "error_description"
    ERROR_URI = "error_uri"
    EXPIRES_IN = "expires_in"
    ACCESS_TOKEN = "access_token"
    TOKEN_TYPE = "token_type"
    RESPONSE_MODE = "response_mode"


class ResponseTypes:
    CODE = "code"
    TOKEN = "token"


class GrantTypes:
    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    REFRESH_TOKEN = "refresh_token"
    PASSWORD = "password"


class TokenTypes:
    BEARER = "bearer"


class Errors:
    INVALID_REQUEST = "invalid_request"
    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    UNSUPPORTED_RESPONSE_TYPE = "unsupported_response_type"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    UNAUTHORIZED_CLIENT = "unauthorized_client"


class ResponseModes:
    FORM_POST = "form_post"


# Keys returned by the direct (account/password) login form
FORM_ACCOUNT = "account"
FORM_PASSWORD = "password"

# Cipher parameters
SALT_SIZE = 32
NONCE_SIZE = 12
KEY_SIZE = 32
DERIVATION_ITERATIONS = 200_000

# Retry defaults
DEFAULT_RETRIES = 5
DEFAULT_BASE_DELAY = 0.1

# Login defaults
DEFAULT_CALLBACK_PORT = 8765
DEFAULT_LOGIN_TIMEOUT = 300.0
