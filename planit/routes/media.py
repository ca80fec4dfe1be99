"""
Banner uploads and address geocoding.
"""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile

from planit.auth import AuthUser
from planit.dependencies import get_current_user, get_geocoder, get_storage_client
from planit.geocoding import Geocoder, GeocodingError
from planit.schemas import BannerKind, BannerUploadResponse, GeocodeResponse
from planit.storage import StorageClient

logger = logging.getLogger(__name__)

router = APIRouter()


def _banner_path(kind: BannerKind, filename: str | None) -> str:
    ext = "bin"
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[1].lower() or ext
    return f"{kind.value}/{int(time.time() * 1000)}-{uuid4().hex[:8]}.{ext}"


@router.post("/banners/{kind}", response_model=BannerUploadResponse)
async def upload_banner(
    kind: BannerKind,
    file: UploadFile = File(...),
    user: AuthUser = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Store a banner image and return its public URL.

    A storage failure does not fail the request: the caller gets a null
    ``banner_url`` and carries on without a banner.
    """
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Banner must be an image")

    data = await file.read()
    path = _banner_path(kind, file.filename)
    try:
        storage.upload_bytes(path, data, content_type)
    except (BotoCoreError, ClientError, OSError) as exc:
        logger.error("Banner upload error for %s: %s", user.id, exc)
        return BannerUploadResponse(banner_url=None)
    return BannerUploadResponse(banner_url=storage.public_url(path))


@router.get("/geocode", response_model=GeocodeResponse)
def geocode(
    address: str = Query(...),
    geocoder: Geocoder = Depends(get_geocoder),
):
    if not address.strip():
        raise HTTPException(status_code=400, detail="Please enter an address")
    try:
        result = geocoder.geocode(address.strip())
    except GeocodingError as exc:
        logger.error("Geocoding error: %s", exc)
        raise HTTPException(
            status_code=502, detail="Failed to geocode address"
        ) from exc
    if result is None:
        raise HTTPException(
            status_code=404,
            detail="Address not found. Please try a more specific address.",
        )
    return result.as_dict()
