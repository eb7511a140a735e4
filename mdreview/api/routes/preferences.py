"""API routes for UI preferences."""

from fastapi import APIRouter, Depends

from mdreview.api.deps import get_preferences_service
from mdreview.schemas.preferences import Preferences, PreferencesUpdate
from mdreview.services.preferences_service import PreferencesService

router = APIRouter()


@router.get("/preferences", response_model=Preferences)
async def get_preferences(
    service: PreferencesService = Depends(get_preferences_service),
) -> Preferences:
    return service.get()


@router.put("/preferences", response_model=Preferences)
async def update_preferences(
    update: PreferencesUpdate,
    service: PreferencesService = Depends(get_preferences_service),
) -> Preferences:
    """Store the given fields; a theme of ``system`` clears the explicit theme."""
    return service.update(update)
