"""Document API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from docguard.api.deps import get_current_actor, get_document_service
from docguard.api.errors import raise_for_error
from docguard.api.schemas.documents import (
    ActivityResponse,
    CommentCreate,
    CommentResponse,
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
    DocumentUpdate,
    SectionResponse,
    SectionUpdate,
)
from docguard.core.actor import Actor
from docguard.core.protocol import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    data: DocumentCreate,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    """Create a document in a department the caller can author in."""
    return raise_for_error(
        service.create_document(actor, data.department_id, data.title, data.description)
    )


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
    department_id: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    include_archived: bool = False,
):
    filters = {"include_archived": include_archived}
    if department_id:
        filters["department_id"] = department_id
    if status_filter:
        filters["status"] = status_filter
    if search:
        filters["search"] = search

    items = raise_for_error(service.list_documents(actor, filters))
    return DocumentListResponse(items=items, total=len(items))


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    include_archived: bool = False,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    return raise_for_error(service.get_document(actor, document_id, include_archived))


@router.patch("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: str,
    data: DocumentUpdate,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    patch = data.model_dump(exclude_unset=True)
    return raise_for_error(service.update_document(actor, document_id, patch))


@router.post("/{document_id}/archive", response_model=DocumentResponse)
async def archive_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    return raise_for_error(service.archive_document(actor, document_id))


@router.post("/{document_id}/unarchive", response_model=DocumentResponse)
async def unarchive_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    return raise_for_error(service.unarchive_document(actor, document_id))


@router.delete("/{document_id}", response_model=DocumentResponse)
async def delete_document(
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    """Permanently delete a document, its sections and its comments."""
    return raise_for_error(service.delete_document(actor, document_id))


@router.put("/{document_id}/sections/{section_id}", response_model=SectionResponse)
async def update_section(
    document_id: str,
    section_id: str,
    data: SectionUpdate,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    return raise_for_error(service.update_section(actor, document_id, section_id, data.content))


@router.post(
    "/{document_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    document_id: str,
    data: CommentCreate,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    return raise_for_error(service.add_comment(actor, document_id, data.content))


@router.get("/{document_id}/activity", response_model=List[ActivityResponse])
async def list_activity(
    document_id: str,
    limit: int = Query(100, ge=1, le=500),
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    return raise_for_error(service.list_activity(actor, document_id, limit))
