"""Local authentication state hygiene."""

from contaflix.auth.cleanup import (
    ACCESS_TOKEN_KEYS,
    AUTH_KEY_PREFIXES,
    AUTH_KEYS,
    MOCK_SESSION_KEY,
    REFRESH_TOKEN_KEYS,
    SESSION_TOKEN_KEY,
    USER_ROLE_KEY,
    auth_key_prefixes,
    check_for_auth_limbo_state,
    cleanup_auth_state,
    is_auth_key,
    is_session_expired,
    recover_auth_state,
)

__all__ = [
    "AUTH_KEYS",
    "AUTH_KEY_PREFIXES",
    "ACCESS_TOKEN_KEYS",
    "REFRESH_TOKEN_KEYS",
    "SESSION_TOKEN_KEY",
    "MOCK_SESSION_KEY",
    "USER_ROLE_KEY",
    "auth_key_prefixes",
    "is_auth_key",
    "cleanup_auth_state",
    "check_for_auth_limbo_state",
    "is_session_expired",
    "recover_auth_state",
]
