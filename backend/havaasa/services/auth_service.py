"""Password sign-in and token checks against the hosted identity service."""

import httpx
import structlog

from havaasa.config import Settings
from havaasa.exceptions import AuthenticationError, HavaasaError
from havaasa.schemas.auth import AuthUser, LoginResponse

logger = structlog.get_logger(__name__)


def _json_object(response: httpx.Response) -> dict:
    """Decoded body when it is a JSON object, else an empty dict."""
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class AuthClient:
    """Thin client for the identity service's token and user endpoints."""

    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None):
        self.base = settings.supabase_url.rstrip("/")
        self.anon_key = settings.supabase_anon_key
        self.http = http or httpx.AsyncClient(timeout=15.0)

    async def _call(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {"apikey": self.anon_key, **kwargs.pop("headers", {})}
        try:
            return await self.http.request(method, f"{self.base}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error("identity_service_unreachable", path=path, error=str(e))
            raise HavaasaError("Identity service unavailable", details=str(e)) from e

    async def sign_in(self, email: str, password: str) -> LoginResponse:
        """Exchange email/password for an access token."""
        response = await self._call(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email.strip(), "password": password},
        )
        if response.is_error:
            body = _json_object(response)
            message = body.get("error_description") or body.get("msg") or "Authentication failed"
            logger.info("sign_in_rejected", status=response.status_code)
            raise AuthenticationError(message)

        session = _json_object(response)
        if not session.get("access_token") or not isinstance(session.get("user"), dict):
            raise AuthenticationError("Authentication failed")
        return LoginResponse(
            token=session["access_token"],
            user=AuthUser.model_validate(session["user"]),
        )

    async def get_user(self, token: str) -> AuthUser:
        """Resolve a bearer token to its user, or raise AuthenticationError."""
        response = await self._call(
            "GET", "/auth/v1/user", headers={"Authorization": f"Bearer {token}"}
        )
        if response.is_error:
            raise AuthenticationError("Invalid or expired token")
        body = _json_object(response)
        if not body.get("id"):
            raise AuthenticationError("Invalid or expired token")
        return AuthUser.model_validate(body)

    async def close(self) -> None:
        await self.http.aclose()
