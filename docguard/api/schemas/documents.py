"""Request and response schemas for document endpoints."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DocumentCreate(BaseModel):
    department_id: str
    title: str
    description: Optional[str] = None


class DocumentUpdate(BaseModel):
    """Partial update; only fields that are sent are applied."""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None


class SectionUpdate(BaseModel):
    content: Dict[str, Any]


class CommentCreate(BaseModel):
    content: str


class PermissionsResponse(BaseModel):
    can_edit: bool
    can_delete: bool
    can_archive: bool
    can_comment: bool


class SectionResponse(BaseModel):
    id: str
    document_id: str
    key: str
    title: str
    position: int
    content: Dict[str, Any] = Field(default_factory=dict)
    is_complete: bool
    updated_at: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    document_id: str
    author_id: str
    content: str
    is_deleted: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class DocumentResponse(BaseModel):
    id: str
    organization_id: str
    department_id: Optional[str] = None
    author_id: str
    title: str
    description: Optional[str] = None
    status: str
    archived_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    permissions: Optional[PermissionsResponse] = None
    sections: Optional[List[SectionResponse]] = None
    comments: Optional[List[CommentResponse]] = None


class DocumentListResponse(BaseModel):
    items: List[DocumentResponse]
    total: int


class ActivityResponse(BaseModel):
    id: str
    document_id: Optional[str] = None
    actor_id: str
    action: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
