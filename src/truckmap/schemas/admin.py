"""Pydantic models for changelog and input screening endpoints."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel


class ChangelogEntryRequest(BaseModel):
    change_type: Literal["api_key", "config", "feature", "security", "email"]
    title: str
    description: str
    severity: Literal["low", "medium", "high", "critical"]
    requires_notification: bool = False
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: Optional[str] = None


class InputValidationRequest(BaseModel):
    value: str
    field_name: str = "input"


class InputValidationResponse(BaseModel):
    valid: bool
    sanitized: str
    errors: List[str]
