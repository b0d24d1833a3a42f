"""Admin changelog and input screening endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from ...schemas.admin import ChangelogEntryRequest, InputValidationRequest, InputValidationResponse
from ...services import security

router = APIRouter(tags=["admin"])


@router.post("/admin/changelog", status_code=status.HTTP_201_CREATED)
def create_changelog_entry(payload: ChangelogEntryRequest) -> dict:
    result = security.log_changelog_entry(**payload.model_dump())
    if not result["success"]:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to log changelog entry: {result['error']}",
        )
    return result["data"] or {}


@router.post("/security/validate-input", response_model=InputValidationResponse, status_code=status.HTTP_200_OK)
def validate_input(payload: InputValidationRequest) -> InputValidationResponse:
    check = security.validate_and_sanitize_user_input(payload.value, payload.field_name)
    return InputValidationResponse(valid=check.valid, sanitized=check.sanitized, errors=check.errors)
