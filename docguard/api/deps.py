from functools import lru_cache
from typing import Generator, Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from docguard.core.actor import Actor
from docguard.core.protocol import DocumentService
from docguard.core.rate_limit import RateLimiter, build_rate_limiter
from docguard.db.models import User
from docguard.db.session import SessionLocal


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache
def get_rate_limiter() -> RateLimiter:
    """Process-wide rate limiter, shared by all requests."""
    return build_rate_limiter()


def get_current_actor(
    db: Session = Depends(get_db),
    user_id: Optional[str] = Header(None, alias="X-User-ID"),
) -> Optional[Actor]:
    """Resolve the actor from the identity header set by the auth gateway.

    Returns None when the identity is missing or unknown; the service
    answers such requests with ``unauthenticated``.
    """
    if not user_id:
        return None
    try:
        uid = UUID(user_id)
    except ValueError:
        return None

    user = db.query(User).filter(User.id == uid).first()
    if not user or not user.is_active:
        return None
    return Actor.from_user(user)


def get_document_service(
    db: Session = Depends(get_db),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> DocumentService:
    return DocumentService(db, rate_limiter)
