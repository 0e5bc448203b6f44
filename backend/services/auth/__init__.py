"""Authentication domain services."""

from .cookies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    clear_token_cookies,
    cookie_secure,
    set_token_cookies,
)
from .identity_resolution import (
    email_taken_by_other,
    find_login_user,
    find_user_by_username,
    normalize_email,
    normalize_username,
    registration_conflict_exists,
)
from .sessions import (
    REFRESH_REUSED_MESSAGE,
    IssuedSession,
    change_password,
    login,
    logout,
    refresh,
)
from .token_store import (
    clear_refresh_token,
    hash_refresh_token,
    refresh_token_matches,
    store_refresh_token,
    swap_refresh_token,
)
from .tokens import (
    InvalidTokenError,
    TokenKind,
    TokenPair,
    TokenService,
    get_token_service,
)

__all__ = [
    "ACCESS_COOKIE",
    "REFRESH_COOKIE",
    "clear_token_cookies",
    "cookie_secure",
    "set_token_cookies",
    "email_taken_by_other",
    "find_login_user",
    "find_user_by_username",
    "normalize_email",
    "normalize_username",
    "registration_conflict_exists",
    "REFRESH_REUSED_MESSAGE",
    "IssuedSession",
    "change_password",
    "login",
    "logout",
    "refresh",
    "clear_refresh_token",
    "hash_refresh_token",
    "refresh_token_matches",
    "store_refresh_token",
    "swap_refresh_token",
    "InvalidTokenError",
    "TokenKind",
    "TokenPair",
    "TokenService",
    "get_token_service",
]
