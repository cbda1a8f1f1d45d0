"""Backend authentication: login/refresh/logout and keyring token storage."""

from robolive.auth.session import login, login_and_store, logout, refresh_access_token
from robolive.auth.token_store import TokenStore

__all__ = ["TokenStore", "login", "login_and_store", "logout", "refresh_access_token"]
