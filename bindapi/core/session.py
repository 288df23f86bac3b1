"""Token lifecycle for the DirectLogin bearer token."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import jwt

from .errors import INVALID_LOGIN_RESPONSE, BindAPIError, BindAuthenticationError

logger = logging.getLogger(__name__)

# Assumed validity of a DirectLogin token when the login response does not say.
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)
# Subtracted from server-provided expiries to absorb clock skew.
DEFAULT_EXPIRY_MARGIN = timedelta(minutes=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str
    consumer_key: str

    def login_payload(self) -> Dict[str, str]:
        return {
            "username": self.username,
            "password": self.password,
            "consumer_key": self.consumer_key,
        }

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***', consumer_key='***')"


@dataclass(frozen=True)
class TokenSession:
    token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def is_valid(self, now: datetime) -> bool:
        if not self.token:
            return False
        return self.expires_at is None or now < self.expires_at


LoginExchange = Callable[[Credentials], Awaitable[Dict[str, Any]]]


def _explicit_expiry(payload: Dict[str, Any], token: str, issued_at: datetime) -> Optional[datetime]:
    """Expiry announced by the server, either as ``expires_in`` or a JWT ``exp`` claim."""
    expires_in = payload.get("expires_in")
    if isinstance(expires_in, (int, float)) and not isinstance(expires_in, bool) and expires_in > 0:
        try:
            return issued_at + timedelta(seconds=expires_in)
        except (OverflowError, ValueError):
            logger.warning("Ignoring out-of-range expires_in %r", expires_in)
            return None

    try:
        claims = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    if isinstance(exp, (int, float)) and not isinstance(exp, bool):
        try:
            return datetime.fromtimestamp(exp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.warning("Ignoring out-of-range exp claim %r", exp)
    return None


class SessionManager:
    """Keeps a valid token around using as few login exchanges as possible.

    Concurrent callers that find the session invalid share a single in-flight
    login instead of each starting their own.
    """

    def __init__(
        self,
        credentials: Credentials,
        login: LoginExchange,
        token_lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        expiry_margin: timedelta = DEFAULT_EXPIRY_MARGIN,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._credentials = credentials
        self._login = login
        self.token_lifetime = token_lifetime
        self.expiry_margin = expiry_margin
        self._clock = clock or utc_now
        self._session = TokenSession()
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def session(self) -> TokenSession:
        return self._session

    @property
    def current_token(self) -> Optional[str]:
        return self._session.token

    def is_valid(self) -> bool:
        return self._session.is_valid(self._clock())

    def invalidate(self) -> None:
        self._session = TokenSession()

    async def ensure_valid(self) -> str:
        """Return a usable token, logging in first when the session is invalid."""
        if self.is_valid():
            return self._session.token  # type: ignore[return-value]
        return await self._join_refresh()

    async def refresh(self) -> str:
        """Force a login exchange (or join the one already running)."""
        return await self._join_refresh()

    async def _join_refresh(self) -> str:
        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._run_login())
            self._refresh_task.add_done_callback(self._clear_refresh_task)
        return await asyncio.shield(self._refresh_task)

    def _clear_refresh_task(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # Retrieve the outcome so an abandoned failure is not reported as unhandled.
        if not task.cancelled():
            task.exception()

    async def _run_login(self) -> str:
        issued_at = self._clock()
        logger.info("Requesting new DirectLogin token for user %s", self._credentials.username)

        try:
            payload = await self._login(self._credentials)
        except BindAuthenticationError:
            raise
        except BindAPIError as exc:
            logger.error("Login exchange failed: %s", exc)
            raise BindAuthenticationError.from_info(exc.info) from exc

        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            logger.error("Login response did not contain a token")
            raise BindAuthenticationError(200, INVALID_LOGIN_RESPONSE, "Login response did not contain a token")

        explicit = _explicit_expiry(payload, token, issued_at)
        if explicit is not None:
            # Short-lived tokens keep at least half of their lifetime.
            margin = min(self.expiry_margin, max(explicit - issued_at, timedelta(0)) / 2)
            expires_at = explicit - margin
        else:
            expires_at = issued_at + self.token_lifetime

        self._session = TokenSession(token=token, expires_at=expires_at)
        logger.info("Obtained DirectLogin token (expires at %s)", expires_at.isoformat())
        return token
