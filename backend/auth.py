"""Principal authentication — session tokens, cookies and admin headers.

System-user login lives outside this service; it hands out the signed
session tokens verified here.
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from fastapi import Request

from errors import Forbidden, Unauthorized

COOKIE_NAME = "parcel_session"


@dataclass(frozen=True)
class Principal:
    user_id: int
    is_admin: bool = False

    @property
    def label(self) -> str:
        return "admin" if self.is_admin and self.user_id == 0 else f"user:{self.user_id}"


def _sign(secret_key: str, payload: str) -> str:
    return hmac.new(secret_key.encode(), payload.encode(), hashlib.sha256).hexdigest()


def create_session_token(secret_key: str, user_id: int, is_admin: bool = False) -> str:
    payload = f"{user_id}:{int(is_admin)}"
    return f"{payload}:{_sign(secret_key, payload)}"


def _verify_token(secret_key: str, token: str) -> Principal | None:
    parts = token.split(":")
    if len(parts) != 3:
        return None
    user_id, admin_flag, signature = parts
    if not secrets.compare_digest(signature, _sign(secret_key, f"{user_id}:{admin_flag}")):
        return None
    try:
        return Principal(user_id=int(user_id), is_admin=admin_flag == "1")
    except ValueError:
        return None


def get_principal(request: Request) -> Principal | None:
    """Resolve the caller via admin headers, bearer token or session cookie."""
    settings = request.app.state.settings

    # Check header auth (API / curl)
    user = request.headers.get("X-Admin-User", "")
    password = request.headers.get("X-Admin-Pass", "")
    if settings.admin_enabled and user and password:
        if secrets.compare_digest(user, settings.admin_user) and secrets.compare_digest(
            password, settings.admin_pass
        ):
            return Principal(user_id=0, is_admin=True)
        return None

    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return _verify_token(settings.secret_key, authorization[len("Bearer "):].strip())

    # Check session cookie (browser)
    session = request.cookies.get(COOKIE_NAME)
    if session:
        return _verify_token(settings.secret_key, session)

    return None


def require_principal(request: Request) -> Principal:
    principal = get_principal(request)
    if principal is None:
        raise Unauthorized()
    return principal


def require_admin(request: Request) -> Principal:
    principal = require_principal(request)
    if not principal.is_admin:
        raise Forbidden("Admin access required")
    return principal
