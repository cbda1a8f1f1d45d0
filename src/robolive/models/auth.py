from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

# ---------------------------------------------------------------------------
# Endpoint paths (relative to the REST base URL)
# ---------------------------------------------------------------------------

LOGIN_PATH: str = "/accounts/login/"
REFRESH_PATH: str = "/accounts/token/refresh/"
LOGOUT_PATH: str = "/accounts/logout/"

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TokenPair(BaseModel):
    """Access / refresh token pair issued by the backend."""

    access: str
    refresh: str


class UserData(BaseModel):
    """Identity of the signed-in user."""

    username: str = ""
    email: str = ""
    role: Literal["USER", "ADMIN"] = "USER"


class LoginResult(BaseModel):
    """Outcome of a login attempt."""

    tokens: TokenPair
    user: UserData

    @property
    def redirect_to(self) -> str:
        return "/admin" if self.user.role == "ADMIN" else "/userDashboard"
