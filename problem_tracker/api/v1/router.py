"""
Router assembly.

Tracker routes authenticate per endpoint through ``get_current_owner`` so the
owner id is available to each handler.
"""

from fastapi import APIRouter

from problem_tracker.api.v1.endpoints import trackers

api_router = APIRouter()
api_router.include_router(trackers.router, prefix="/trackers", tags=["trackers"])
