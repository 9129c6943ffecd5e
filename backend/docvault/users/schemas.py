"""Pydantic schemas for user provisioning"""

from typing import Optional

from pydantic import BaseModel, Field


# Columns every provisioning CSV must carry; managerEmail is optional
REQUIRED_COLUMNS = ("username", "email", "role")


class UserImportError(BaseModel):
    """Schema for a rejected import row"""
    row: int
    username: Optional[str] = None
    error: str


class UserImportResult(BaseModel):
    """Schema for a user import result"""
    total_rows: int
    imported_count: int
    error_count: int
    errors: list[UserImportError] = Field(default_factory=list)
