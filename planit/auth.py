"""
Session verification against the hosted auth service.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: str
    username: Optional[str] = None


class AuthClient(Protocol):
    """Resolves a bearer session token to the signed-in user."""

    def get_user(self, token: str) -> Optional[AuthUser]:
        ...


@dataclass
class InMemoryAuthClient:
    """Token table for development and tests."""

    sessions: dict[str, AuthUser] = field(default_factory=dict)

    def register(self, token: str, user: AuthUser) -> None:
        self.sessions[token] = user

    def get_user(self, token: str) -> Optional[AuthUser]:
        return self.sessions.get(token)


@dataclass
class RemoteAuthClient:
    """
    Verifies tokens with the hosted auth service's ``/auth/v1/user`` endpoint.

    Any non-2xx answer means the session is not valid. Network failures are
    logged and treated the same way.
    """

    base_url: str
    api_key: str = ""
    timeout: float = 10.0

    def get_user(self, token: str) -> Optional[AuthUser]:
        url = f"{self.base_url.rstrip('/')}/auth/v1/user"
        headers = {"Authorization": f"Bearer {token}"}
        if self.api_key:
            headers["apikey"] = self.api_key
        try:
            response = requests.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("Auth service unreachable: %s", exc)
            return None
        if not response.ok:
            return None
        try:
            payload = response.json()
            metadata = payload.get("user_metadata") or {}
            return AuthUser(
                id=payload["id"],
                email=payload.get("email") or "",
                username=metadata.get("username"),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.error("Unexpected auth service payload: %r", exc)
            return None


def extract_token(authorization: Optional[str], cookie: Optional[str]) -> Optional[str]:
    """Bearer header wins over the session cookie."""
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        if token:
            return token
    if cookie:
        return cookie.strip() or None
    return None
