"""
Session Resolution

The identity provider owns login and session issuance. The ledger only
needs to turn an inbound request into a principal, or nothing.

An unknown or missing token answers "no session", which the route
layer turns into a 401.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from ledger.models.ledger import Principal
from ledger.services.storage import UserStorageInterface


logger = structlog.get_logger(__name__)


class RequestContext(BaseModel):
    """Transport-neutral view of an inbound request."""

    headers: dict[str, str] = Field(default_factory=dict)
    cookies: dict[str, str] = Field(default_factory=dict)
    path_params: dict[str, str] = Field(default_factory=dict)
    body: Any = None

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


class SessionResolverInterface(ABC):
    """Maps a request to the authenticated principal."""

    @abstractmethod
    async def resolve(self, request: RequestContext) -> Optional[Principal]:
        """
        Resolve the principal behind a request.

        Returns:
            The principal, or None when there is no valid session
        """
        pass


class TokenSessionResolver(SessionResolverInterface):
    """
    Resolves opaque session tokens issued by the identity provider.

    The token is read from `Authorization: Bearer <token>` first,
    then from the session cookie. A token maps to a user id only; the
    role is read from the user store on every request, so a role change
    or a deleted account takes effect on the very next call.
    """

    def __init__(
        self,
        users: UserStorageInterface,
        sessions: Optional[dict[str, UUID]] = None,
        cookie_name: str = "session_token",
    ):
        self._users = users
        self._sessions: dict[str, UUID] = dict(sessions or {})
        self._cookie_name = cookie_name

    def register(self, token: str, user_id: UUID) -> None:
        """Record a session issued by the identity provider."""
        self._sessions[token] = user_id

    def revoke(self, token: str) -> None:
        self._sessions.pop(token, None)

    def _extract_token(self, request: RequestContext) -> Optional[str]:
        authorization = request.header("authorization")
        if authorization:
            scheme, _, token = authorization.partition(" ")
            if scheme.lower() == "bearer" and token.strip():
                return token.strip()
        return request.cookies.get(self._cookie_name) or None

    async def resolve(self, request: RequestContext) -> Optional[Principal]:
        token = self._extract_token(request)
        if token is None:
            return None
        user_id = self._sessions.get(token)
        if user_id is None:
            logger.info("unknown_session_token")
            return None

        user = await self._users.get_user(user_id)
        if user is None:
            # Account deleted since the session was issued
            logger.info("session_user_gone", user_id=str(user_id))
            self.revoke(token)
            return None
        return Principal(id=user.id, role=user.role)
