"""
Dependency wiring for the FastAPI app.

Handlers receive every collaborator through ``Depends`` so tests can swap in
the in-memory implementations with ``app.dependency_overrides``.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request

from planit.auth import AuthClient, AuthUser, InMemoryAuthClient, RemoteAuthClient, extract_token
from planit.config import Settings, get_settings
from planit.db import DbClient, DbError, InMemoryDbClient, UserRecord
from planit.geocoding import Geocoder, NominatimGeocoder
from planit.storage import InMemoryStorageClient, S3StorageClient, StorageClient

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_auth_client: AuthClient | None = None
_storage_client: StorageClient | None = None
_geocoder: Geocoder | None = None


def get_db_client() -> DbClient:
    """
    Return the shared store handle (one engine/pool per process).
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        from planit.db_postgres import PostgresDbClient

        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.auth_url:
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = RemoteAuthClient(
            base_url=settings.auth_url,
            api_key=settings.auth_api_key or "",
            timeout=settings.auth_timeout_seconds,
        )
    return _auth_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            region=settings.storage_region or "",
            endpoint=settings.storage_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.storage_public_url,
        )
    return _storage_client


def get_geocoder() -> Geocoder:
    global _geocoder
    if _geocoder:
        return _geocoder

    settings = get_settings()
    _geocoder = NominatimGeocoder(
        url=settings.geocoder_url,
        user_agent=settings.geocoder_user_agent,
        timeout=settings.geocoder_timeout_seconds,
    )
    return _geocoder


def _mirror_user(db: DbClient, user: AuthUser) -> None:
    existing = db.get_user(user.id)
    if existing and existing.email == user.email and existing.username == user.username:
        return
    try:
        db.save_user(UserRecord(id=user.id, email=user.email, username=user.username))
    except DbError as exc:
        # The profile row is a convenience copy; the session itself is valid.
        logger.error("Failed to mirror user %s: %s", user.id, exc)


def get_optional_user(
    request: Request,
    auth: AuthClient = Depends(get_auth_client),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> Optional[AuthUser]:
    token = extract_token(
        request.headers.get("Authorization"),
        request.cookies.get(settings.session_cookie_name),
    )
    if not token:
        return None
    user = auth.get_user(token)
    if user:
        _mirror_user(db, user)
    return user


def get_current_user(
    user: Optional[AuthUser] = Depends(get_optional_user),
) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
