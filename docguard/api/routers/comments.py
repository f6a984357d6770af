"""Comment API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from docguard.api.deps import get_current_actor, get_document_service
from docguard.api.errors import raise_for_error
from docguard.api.schemas.documents import CommentResponse
from docguard.core.actor import Actor
from docguard.core.protocol import DocumentService

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}", response_model=CommentResponse)
async def delete_comment(
    comment_id: str,
    service: DocumentService = Depends(get_document_service),
    actor: Optional[Actor] = Depends(get_current_actor),
):
    """Soft delete a comment; the thread keeps a placeholder."""
    return raise_for_error(service.delete_comment(actor, comment_id))
