"""
HTTP routes for the PlanIt API.
"""

from fastapi import APIRouter

from planit.routes import engagement, entities, events, me, media, search

router = APIRouter()
router.include_router(entities.router)
router.include_router(events.router)
router.include_router(engagement.router)
router.include_router(search.router)
router.include_router(me.router)
router.include_router(media.router)
