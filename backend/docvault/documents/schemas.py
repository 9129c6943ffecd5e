"""Document API request/response schemas"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    id: str
    username: str


class VersionResponse(BaseModel):
    """One document version (storage key is never exposed)"""
    id: str
    document_id: str
    version_number: int
    mime_type: str
    size_bytes: int
    status: str = Field(..., description="pending_scan | available | quarantined")
    uploaded_by: Optional[UserSummary] = None
    scanned_at: Optional[str] = None
    created_at: Optional[str] = None


class DocumentResponse(BaseModel):
    id: str
    owner_id: str
    original_filename: str
    access_level: str
    tags: List[str]
    current_version_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class UploadAcceptedResponse(BaseModel):
    """202 response for a new document"""
    message: str
    document: DocumentResponse
    version: VersionResponse


class VersionAcceptedResponse(BaseModel):
    """202 response for a new version"""
    message: str
    version: VersionResponse


class DocumentUpdateRequest(BaseModel):
    """Partial update: omitted fields are left unchanged"""
    model_config = ConfigDict(extra="forbid")

    access_level: Optional[str] = Field(None, description="private | team | public")
    tags: Optional[Union[List[str], str]] = Field(
        None, description="List of tags or a comma-separated string; replaces the tag set"
    )


class DocumentUpdateResponse(BaseModel):
    message: str
    document: DocumentResponse


class VersionHistoryResponse(BaseModel):
    document_id: str
    versions: List[VersionResponse]
