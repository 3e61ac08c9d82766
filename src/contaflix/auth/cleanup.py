"""Detection and removal of inconsistent local authentication state.

A browser session can be left half signed-in: a token without its refresh
pair, a demo session flag without a role, an expired session blob. These
helpers find such "limbo" states in the local and session storage scopes
and wipe every authentication key so the next sign-in starts clean.

Keys belong to the auth namespace only if they are listed in ``AUTH_KEYS``
or start with one of the prefixes from ``auth_key_prefixes()``. Obfuscated
credentials written by ``AuthStorage`` are matched through the configured
secure-storage prefix.
"""

import json
from collections.abc import Iterable
from datetime import UTC, datetime

import structlog

from contaflix.config import FlatSettings, get_settings
from contaflix.storage.safe import SafeStorage

logger = structlog.get_logger(__name__)

SESSION_TOKEN_KEY = "supabase.auth.token"
MOCK_SESSION_KEY = "mock_session"
USER_ROLE_KEY = "user_role"

# Session token pair; AuthStorage's obfuscated access token has no refresh
# counterpart and is not part of the pair check.
ACCESS_TOKEN_KEYS = ("contaflix_access_token",)
REFRESH_TOKEN_KEYS = ("contaflix_refresh_token",)

AUTH_KEYS = frozenset(
    {
        SESSION_TOKEN_KEY,
        MOCK_SESSION_KEY,
        USER_ROLE_KEY,
        "contaflix_client_id",
        "contaflix_client_data",
        *ACCESS_TOKEN_KEYS,
        *REFRESH_TOKEN_KEYS,
    }
)

AUTH_KEY_PREFIXES = ("supabase.auth.", "sb-")


def auth_key_prefixes(settings: FlatSettings | None = None) -> tuple[str, ...]:
    """Key prefixes of the auth namespace, including obfuscated credentials."""
    settings = settings or get_settings()
    return (*AUTH_KEY_PREFIXES, f"{settings.secure_storage_prefix}contaflix_")


def is_auth_key(key: str, settings: FlatSettings | None = None) -> bool:
    """Check whether a storage key belongs to the auth namespace."""
    return key in AUTH_KEYS or key.startswith(auth_key_prefixes(settings))


def _present(scopes: Iterable[SafeStorage], keys: Iterable[str]) -> bool:
    wanted = tuple(keys)
    return any(scope.get_item(key) is not None for scope in scopes for key in wanted)


def cleanup_auth_state(
    local: SafeStorage, session: SafeStorage, settings: FlatSettings | None = None
) -> int:
    """Remove every auth key from both storage scopes.

    Storage failures are tolerated. Returns the number of keys removed.
    """
    prefixes = auth_key_prefixes(settings)
    removed = 0
    for scope in (local, session):
        for key in scope.keys():
            if (key in AUTH_KEYS or key.startswith(prefixes)) and scope.remove_item(key):
                removed += 1
    logger.info("auth_state_cleaned", removed=removed)
    return removed


def check_for_auth_limbo_state(local: SafeStorage, session: SafeStorage) -> bool:
    """Detect inconsistent auth state without repairing it.

    Limbo means either the mock-session flag and the user-role flag
    disagree on presence, or an access token is stored without a refresh
    token (or the other way round). Both scopes are considered together.
    """
    scopes = (local, session)

    has_mock_session = _present(scopes, (MOCK_SESSION_KEY,))
    has_user_role = _present(scopes, (USER_ROLE_KEY,))
    if has_mock_session != has_user_role:
        logger.warning(
            "auth_limbo_detected",
            reason="mock_session_role_mismatch",
            mock_session=has_mock_session,
            user_role=has_user_role,
        )
        return True

    has_access = _present(scopes, ACCESS_TOKEN_KEYS)
    has_refresh = _present(scopes, REFRESH_TOKEN_KEYS)
    if has_access != has_refresh:
        logger.warning(
            "auth_limbo_detected",
            reason="token_pair_mismatch",
            access_token=has_access,
            refresh_token=has_refresh,
        )
        return True

    return False


def is_session_expired(local: SafeStorage, now: datetime | None = None) -> bool:
    """Check the stored session blob for expiry.

    A missing blob is not expired. A blob that cannot be parsed counts as
    expired so that it gets cleaned up.
    """
    raw = local.get_item(SESSION_TOKEN_KEY)
    if raw is None:
        return False
    try:
        parsed = json.loads(raw)
        expires_at = parsed.get("expiresAt") if isinstance(parsed, dict) else None
        if expires_at is None:
            return False
        expiry = datetime.fromtimestamp(float(expires_at), tz=UTC)
    except (ValueError, TypeError, OverflowError, OSError):
        logger.warning("auth_session_corrupted")
        return True
    return expiry < (now or datetime.now(UTC))


def recover_auth_state(
    local: SafeStorage,
    session: SafeStorage,
    now: datetime | None = None,
    settings: FlatSettings | None = None,
) -> bool:
    """Clean up when the stored session is expired or in limbo.

    Returns True when a cleanup was performed.
    """
    if is_session_expired(local, now):
        logger.warning("auth_session_expired")
        cleanup_auth_state(local, session, settings)
        return True
    if check_for_auth_limbo_state(local, session):
        cleanup_auth_state(local, session, settings)
        return True
    return False
