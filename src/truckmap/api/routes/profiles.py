"""Profile and favorites endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Path, status

from ...schemas.auth import ProfileModel, ProfileUpdateRequest
from ...services import favorites as favorites_service
from ...services.identity import SessionManager
from ..dependencies import get_session_manager, require_profile_owner

router = APIRouter(tags=["profiles"])


@router.get(
    "/profiles/{profile_id}",
    response_model=ProfileModel,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_profile_owner)],
)
def get_profile(
    profile_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager),
) -> ProfileModel:
    profile = manager.repository.get_by_id(profile_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Profile '{profile_id}' not found.")
    return ProfileModel(**asdict(profile))


@router.patch(
    "/profiles/{profile_id}",
    response_model=ProfileModel,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_profile_owner)],
)
def update_profile(
    payload: ProfileUpdateRequest,
    profile_id: str = Path(...),
    manager: SessionManager = Depends(get_session_manager),
) -> ProfileModel:
    """Apply the owner's edits; these always win over later provider sign-ins."""
    changes = payload.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No profile fields supplied.")
    profile = manager.repository.update_fields(profile_id, changes)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Profile '{profile_id}' not found.")
    return ProfileModel(**asdict(profile))


@router.get("/users/{user_id}/favorites", response_model=list[str], status_code=status.HTTP_200_OK)
def list_favorites(user_id: str = Path(...)) -> list[str]:
    return sorted(favorites_service.get_favorites(user_id))


@router.get("/users/{user_id}/favorites/{truck_id}", status_code=status.HTTP_200_OK)
def check_favorite(user_id: str = Path(...), truck_id: str = Path(...)) -> dict:
    return {"truck_id": truck_id, "favorite": favorites_service.is_favorite(user_id, truck_id)}


@router.post("/users/{user_id}/favorites/{truck_id}", status_code=status.HTTP_200_OK)
def toggle_favorite(user_id: str = Path(...), truck_id: str = Path(...)) -> dict:
    try:
        favorite = favorites_service.toggle_favorite(user_id, truck_id)
    except ConnectionError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"truck_id": truck_id, "favorite": favorite}
