"""Document service: the mutation protocol behind every document operation.

Each operation runs the same fixed sequence:

    validate → rate limit (expensive reads) → fetch → authorize → commit/respond

and returns an ``OperationResult``. State changes and their activity log
entry are written in one transaction; a failure anywhere inside it rolls
both back. Denied attempts are recorded separately, outside that
transaction.

Existence is never leaked: an actor who cannot view a document gets
``not_found`` for it on every path. ``forbidden`` is only returned to
actors who can see the document but lack the requested right.
"""

import json
import time
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_, text
from sqlalchemy.orm import Session

from docguard.common.logger import get_logger
from docguard.core.actor import Actor
from docguard.core.audit import AuditLedger
from docguard.core.config import Settings, get_settings
from docguard.core.errors import (
    ErrorKind,
    OperationResult,
    ProtocolError,
    TransactionTimeout,
    safe_error_category,
)
from docguard.core.protocol.machine import Deadline, RequestStateMachine
from docguard.core.protocol.states import ProtocolStep
from docguard.core.rate_limit import RateLimiter, build_rate_limiter
from docguard.core.rbac import (
    OrganizationPolicy,
    Role,
    ResourceGraph,
    can_archive,
    can_comment,
    can_create,
    can_delete,
    can_delete_comment,
    can_edit,
    can_view,
    can_view_archived,
    document_permissions,
)
from docguard.core.validation import (
    DocumentFilters,
    parse_id,
    validate_content,
    validate_filters,
    validate_patch,
    validate_text,
)
from docguard.db.base import utcnow
from docguard.db.models import (
    ActivityAction,
    Comment,
    DELETED_COMMENT_MARKER,
    Document,
    DocumentStatus,
    Section,
)


logger = get_logger(__name__)

MAX_ACTIVITY_LIMIT = 500


def _has_content(value: Any) -> bool:
    """True when a section payload holds at least one non-empty value."""
    if isinstance(value, dict):
        return any(_has_content(v) for v in value.values())
    if isinstance(value, list):
        return any(_has_content(v) for v in value)
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _str(value) -> Optional[str]:
    return str(value) if value is not None else None


class DocumentService:
    """
    Document operations for one database session.

    Handles:
    - Creating, updating, archiving, restoring and deleting documents
    - Section updates and comments
    - Scoped reads with server-side permission flags
    - Activity trail queries
    """

    def __init__(
        self,
        db: Session,
        rate_limiter: Optional[RateLimiter] = None,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the document service.

        Args:
            db: Database session
            rate_limiter: Limiter for expensive reads (built from settings if omitted)
            settings: Application settings
            clock: Monotonic clock used for transaction deadlines
        """
        self.db = db
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or build_rate_limiter(self.settings)
        self.graph = ResourceGraph(db)
        self.ledger = AuditLedger(db, self.settings.audit_details_limit)
        self._clock = clock

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(
        self,
        actor: Optional[Actor],
        department_id: Any,
        title: Any,
        description: Any = None,
    ) -> OperationResult[Dict[str, Any]]:
        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            dept_id = parse_id(department_id)
            clean_title = validate_text(title, self.settings.title_max_length)
            clean_description = validate_text(
                description, self.settings.description_max_length, required=False
            )
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            department = self.graph.get_department(dept_id)
            if department is None:
                raise ProtocolError(ErrorKind.NOT_FOUND)
            deadline.check()
            machine.advance(ProtocolStep.FETCH)

            if not can_create(actor, department):
                sees_department = (
                    actor.organization_id == department.organization_id
                    and actor.role_for(department.id) is not None
                )
                kind = ErrorKind.FORBIDDEN if sees_department else ErrorKind.NOT_FOUND
                self._deny(machine, actor, None, kind)
            machine.advance(ProtocolStep.AUTHORIZE)

            policy = self.graph.organization_policy(department.organization_id)

            def mutate() -> Document:
                document = Document(
                    organization_id=department.organization_id,
                    department_id=department.id,
                    author_id=actor.id,
                    title=clean_title,
                    description=clean_description,
                    status=DocumentStatus.DRAFT.value,
                )
                self.db.add(document)
                self.db.flush()

                for position, key in enumerate(self.settings.default_sections_list):
                    self.db.add(Section(
                        document_id=document.id,
                        key=key,
                        title=key.replace("_", " ").title(),
                        position=position,
                        content={},
                        is_complete=False,
                    ))

                self._audit(actor, document, ActivityAction.CREATED, {
                    "department_id": department.id,
                    "status": document.status,
                    "title_length": len(clean_title),
                    "section_count": len(self.settings.default_sections_list),
                })
                return document

            document = self._commit(machine, deadline, mutate)
            return self._document_to_dict(
                document,
                permissions=document_permissions(actor, document, policy),
                include_sections=True,
            )

        return self._run("create_document", actor, handler)

    def update_document(
        self,
        actor: Optional[Actor],
        document_id: Any,
        patch: Any,
    ) -> OperationResult[Dict[str, Any]]:
        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            doc_id = parse_id(document_id)
            changes = validate_patch(
                patch, self.settings.title_max_length, self.settings.description_max_length
            )
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            document = self._fetch_document(machine, doc_id, deadline)
            policy = self.graph.organization_policy(document.organization_id)
            self._authorize_write(machine, actor, document, can_edit, policy)

            def mutate() -> Document:
                changed = sorted(
                    field for field, value in changes.items()
                    if getattr(document, field) != value
                )
                for field in changed:
                    setattr(document, field, changes[field])

                details: Dict[str, Any] = {"fields": changed}
                if "status" in changed:
                    details["status"] = document.status
                if "title" in changed:
                    details["title_length"] = len(document.title)
                if "description" in changed:
                    details["description_length"] = len(document.description or "")
                self._audit(actor, document, ActivityAction.UPDATED, details)
                return document

            document = self._commit(machine, deadline, mutate)
            return self._document_to_dict(
                document, permissions=document_permissions(actor, document, policy)
            )

        return self._run("update_document", actor, handler)

    def archive_document(
        self, actor: Optional[Actor], document_id: Any
    ) -> OperationResult[Dict[str, Any]]:
        return self._set_archived(actor, document_id, archived=True)

    def unarchive_document(
        self, actor: Optional[Actor], document_id: Any
    ) -> OperationResult[Dict[str, Any]]:
        return self._set_archived(actor, document_id, archived=False)

    def _set_archived(
        self, actor: Optional[Actor], document_id: Any, *, archived: bool
    ) -> OperationResult[Dict[str, Any]]:
        operation = "archive_document" if archived else "unarchive_document"

        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            doc_id = parse_id(document_id)
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            document = self._fetch_document(machine, doc_id, deadline, include_archived=True)
            policy = self.graph.organization_policy(document.organization_id)
            self._authorize_write(machine, actor, document, can_archive, policy)

            def mutate() -> Document:
                # Repeated calls are accepted; the latest write wins
                was_archived = document.is_archived
                document.archived_at = utcnow() if archived else None
                # Archive state changes leave updated_at as stored
                document.updated_at = Document.updated_at
                self._audit(
                    actor,
                    document,
                    ActivityAction.ARCHIVED if archived else ActivityAction.UNARCHIVED,
                    {"was_archived": was_archived},
                )
                return document

            document = self._commit(machine, deadline, mutate)
            return self._document_to_dict(
                document, permissions=document_permissions(actor, document, policy)
            )

        return self._run(operation, actor, handler)

    def delete_document(
        self, actor: Optional[Actor], document_id: Any
    ) -> OperationResult[Dict[str, Any]]:
        """Hard delete a document with its sections and comments.

        The activity entry carrying the pre-delete snapshot is written first,
        then children, then the document, all in one transaction.
        """
        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            doc_id = parse_id(document_id)
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            document = self._fetch_document(machine, doc_id, deadline, include_archived=True)
            policy = self.graph.organization_policy(document.organization_id)
            self._authorize_write(machine, actor, document, can_delete, policy)

            def mutate() -> Dict[str, Any]:
                snapshot = self._document_to_dict(document)
                counts = self.graph.count_children(document.id)
                self._audit(actor, document, ActivityAction.DELETED, {
                    "title": document.title,
                    "department_id": document.department_id,
                    "status": document.status,
                    "author_id": document.author_id,
                    "archived": document.is_archived,
                    "section_count": counts["sections"],
                    "comment_count": counts["comments"],
                })
                self.db.flush()

                for comment in list(document.comments):
                    self.db.delete(comment)
                for section in list(document.sections):
                    self.db.delete(section)
                self.db.delete(document)
                return snapshot

            return self._commit(machine, deadline, mutate)

        return self._run("delete_document", actor, handler)

    def get_document(
        self,
        actor: Optional[Actor],
        document_id: Any,
        include_archived: bool = False,
    ) -> OperationResult[Dict[str, Any]]:
        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            doc_id = parse_id(document_id)
            if not isinstance(include_archived, bool):
                raise ProtocolError(ErrorKind.INPUT_INVALID)
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            document = self._fetch_document(
                machine, doc_id, deadline, include_archived=include_archived
            )
            policy = self.graph.organization_policy(document.organization_id)
            self._authorize_read(machine, actor, document, policy)

            if document.is_archived and not can_view_archived(actor, document, policy):
                raise ProtocolError(ErrorKind.NOT_FOUND)

            result = self._document_to_dict(
                document,
                permissions=document_permissions(actor, document, policy),
                include_sections=True,
                include_comments=True,
            )
            machine.advance(ProtocolStep.RESPOND)
            return result

        return self._run("get_document", actor, handler)

    def list_documents(
        self,
        actor: Optional[Actor],
        filters: Any = None,
    ) -> OperationResult[List[Dict[str, Any]]]:
        """List documents visible to the actor, always within their organization."""
        def handler(machine: RequestStateMachine) -> List[Dict[str, Any]]:
            criteria = validate_filters(filters, self.settings.search_max_length)
            machine.advance(ProtocolStep.VALIDATE)

            self._check_rate_limit(machine, actor, "search" if criteria.search else "list")

            deadline = self._start_deadline()
            policy = self.graph.organization_policy(actor.organization_id)
            documents = self._query_documents(actor, criteria, policy)
            deadline.check()
            machine.advance(ProtocolStep.FETCH)

            visible = [doc for doc in documents if can_view(actor, doc, policy)]
            machine.advance(ProtocolStep.AUTHORIZE)

            result = [
                self._document_to_dict(doc, permissions=document_permissions(actor, doc, policy))
                for doc in visible
            ]
            machine.advance(ProtocolStep.RESPOND)
            return result

        return self._run("list_documents", actor, handler)

    def _query_documents(
        self, actor: Actor, criteria: DocumentFilters, policy: OrganizationPolicy
    ) -> List[Document]:
        departments = actor.department_ids
        if criteria.department_id is not None:
            departments = departments & {criteria.department_id}
        if not departments:
            return []

        query = self.db.query(Document).filter(
            and_(
                Document.organization_id == actor.organization_id,
                Document.department_id.in_(list(departments)),
            )
        )

        archived_departments = set()
        if criteria.include_archived and policy.managers_view_archived:
            archived_departments = departments & actor.departments_with(Role.MANAGER)
        if archived_departments:
            query = query.filter(or_(
                Document.archived_at.is_(None),
                Document.department_id.in_(list(archived_departments)),
            ))
        else:
            query = query.filter(Document.archived_at.is_(None))

        if criteria.status:
            query = query.filter(Document.status == criteria.status)
        if criteria.search:
            escaped = (
                criteria.search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            )
            query = query.filter(Document.title.ilike(f"%{escaped}%", escape="\\"))

        query = query.order_by(Document.updated_at.desc(), Document.id)
        return query.limit(self.settings.list_max_results).all()

    # ------------------------------------------------------------------
    # Sections and comments
    # ------------------------------------------------------------------

    def update_section(
        self,
        actor: Optional[Actor],
        document_id: Any,
        section_id: Any,
        content: Any,
    ) -> OperationResult[Dict[str, Any]]:
        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            doc_id = parse_id(document_id)
            sec_id = parse_id(section_id)
            clean_content = validate_content(
                content,
                self.settings.section_content_max_bytes,
                self.settings.section_content_max_depth,
            )
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            document = self._fetch_document(machine, doc_id, deadline, advance=False)
            section = self.graph.get_section(doc_id, sec_id)
            if section is None:
                raise ProtocolError(ErrorKind.NOT_FOUND)
            deadline.check()
            machine.advance(ProtocolStep.FETCH)

            policy = self.graph.organization_policy(document.organization_id)
            self._authorize_write(machine, actor, document, can_edit, policy)

            def mutate() -> Section:
                section.content = clean_content
                section.is_complete = _has_content(clean_content)
                document.updated_at = utcnow()
                self._audit(actor, document, ActivityAction.SECTION_UPDATED, {
                    "section_id": section.id,
                    "section_key": section.key,
                    "content_bytes": len(
                        json.dumps(clean_content, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
                    ),
                    "is_complete": section.is_complete,
                })
                return section

            section = self._commit(machine, deadline, mutate)
            return self._section_to_dict(section)

        return self._run("update_section", actor, handler)

    def add_comment(
        self,
        actor: Optional[Actor],
        document_id: Any,
        content: Any,
    ) -> OperationResult[Dict[str, Any]]:
        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            doc_id = parse_id(document_id)
            body = validate_text(content, self.settings.comment_max_length)
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            document = self._fetch_document(machine, doc_id, deadline)
            policy = self.graph.organization_policy(document.organization_id)
            self._authorize_write(machine, actor, document, can_comment, policy)

            def mutate() -> Comment:
                comment = Comment(document_id=document.id, author_id=actor.id, content=body)
                self.db.add(comment)
                self.db.flush()
                self._audit(actor, document, ActivityAction.COMMENT_ADDED, {
                    "comment_id": comment.id,
                    "content_length": len(body),
                })
                return comment

            comment = self._commit(machine, deadline, mutate)
            return self._comment_to_dict(comment)

        return self._run("add_comment", actor, handler)

    def delete_comment(
        self, actor: Optional[Actor], comment_id: Any
    ) -> OperationResult[Dict[str, Any]]:
        """Soft delete: the body is replaced by a marker, the row stays."""
        def handler(machine: RequestStateMachine) -> Dict[str, Any]:
            com_id = parse_id(comment_id)
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            comment = self.graph.get_comment(com_id)
            if comment is None:
                raise ProtocolError(ErrorKind.NOT_FOUND)
            document = self._fetch_document(machine, comment.document_id, deadline)
            policy = self.graph.organization_policy(document.organization_id)

            if not can_delete_comment(actor, document, comment, policy):
                kind = (
                    ErrorKind.FORBIDDEN if can_view(actor, document, policy)
                    else ErrorKind.NOT_FOUND
                )
                self._deny(machine, actor, document.id, kind)
            machine.advance(ProtocolStep.AUTHORIZE)

            def mutate() -> Comment:
                already_deleted = bool(comment.is_deleted)
                comment.is_deleted = True
                comment.content = DELETED_COMMENT_MARKER
                self._audit(actor, document, ActivityAction.COMMENT_DELETED, {
                    "comment_id": comment.id,
                    "already_deleted": already_deleted,
                })
                return comment

            comment = self._commit(machine, deadline, mutate)
            return self._comment_to_dict(comment)

        return self._run("delete_comment", actor, handler)

    # ------------------------------------------------------------------
    # Activity trail
    # ------------------------------------------------------------------

    def list_activity(
        self,
        actor: Optional[Actor],
        document_id: Any,
        limit: int = 100,
    ) -> OperationResult[List[Dict[str, Any]]]:
        """Activity entries for a document the actor can view, oldest first."""
        def handler(machine: RequestStateMachine) -> List[Dict[str, Any]]:
            doc_id = parse_id(document_id)
            if not isinstance(limit, int) or isinstance(limit, bool) or not 1 <= limit <= MAX_ACTIVITY_LIMIT:
                raise ProtocolError(ErrorKind.INPUT_INVALID)
            machine.advance(ProtocolStep.VALIDATE)

            deadline = self._start_deadline()
            document = self._fetch_document(machine, doc_id, deadline)
            policy = self.graph.organization_policy(document.organization_id)
            self._authorize_read(machine, actor, document, policy)

            entries = self.ledger.list_for_document(document.id, limit=limit)
            machine.advance(ProtocolStep.RESPOND)
            return [self._activity_to_dict(entry) for entry in entries]

        return self._run("list_activity", actor, handler)

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------

    def _run(self, operation: str, actor: Optional[Actor], handler) -> OperationResult:
        machine = RequestStateMachine(operation)
        try:
            # Identity is checked before anything else, including argument validation
            if not isinstance(actor, Actor) or actor.id is None:
                raise ProtocolError(ErrorKind.UNAUTHENTICATED)
            return OperationResult.success(handler(machine))
        except ProtocolError as e:
            machine.reject(e.kind)
            self._rollback()
            logger.debug("%s rejected: %s", operation, e.kind.value)
            category = e.category if e.kind == ErrorKind.INTERNAL else None
            return OperationResult.failure(e.kind, category=category, retry_after=e.retry_after)
        except Exception as e:
            machine.reject(ErrorKind.INTERNAL)
            logger.exception("Unexpected failure in %s", operation)
            self._rollback()
            return OperationResult.failure(ErrorKind.INTERNAL, category=safe_error_category(e))

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except Exception:
            logger.exception("Rollback failed")

    def _start_deadline(self) -> Deadline:
        deadline = Deadline(self.settings.transaction_timeout_seconds, clock=self._clock)
        bind = self.db.get_bind()
        if bind is not None and bind.dialect.name == "postgresql":
            timeout_ms = int(self.settings.transaction_timeout_seconds * 1000)
            self.db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
        return deadline

    def _check_rate_limit(
        self, machine: RequestStateMachine, actor: Actor, operation_class: str
    ) -> None:
        if self.settings.rate_limit_enabled:
            decision = self.rate_limiter.hit(actor.id, operation_class)
            if not decision.allowed:
                logger.warning(
                    "Rate limit exceeded for actor %s on %s", actor.id, operation_class
                )
                raise ProtocolError(ErrorKind.RATE_LIMITED, retry_after=decision.retry_after)
        machine.advance(ProtocolStep.RATE_LIMIT)

    def _fetch_document(
        self,
        machine: RequestStateMachine,
        document_id: UUID,
        deadline: Deadline,
        *,
        include_archived: bool = False,
        advance: bool = True,
    ) -> Document:
        """Load a document; absent or hidden archived documents are not found."""
        document = self.graph.get_document(document_id)
        if document is None:
            raise ProtocolError(ErrorKind.NOT_FOUND)
        if document.is_archived and not include_archived:
            raise ProtocolError(ErrorKind.NOT_FOUND)
        deadline.check()
        if advance:
            machine.advance(ProtocolStep.FETCH)
        return document

    def _authorize_read(
        self,
        machine: RequestStateMachine,
        actor: Actor,
        document: Document,
        policy: OrganizationPolicy,
    ) -> None:
        if not can_view(actor, document, policy):
            self._deny(machine, actor, document.id, ErrorKind.NOT_FOUND)
        machine.advance(ProtocolStep.AUTHORIZE)

    def _authorize_write(
        self,
        machine: RequestStateMachine,
        actor: Actor,
        document: Document,
        check: Callable[..., bool],
        policy: OrganizationPolicy,
    ) -> None:
        if not check(actor, document, policy):
            kind = (
                ErrorKind.FORBIDDEN if can_view(actor, document, policy)
                else ErrorKind.NOT_FOUND
            )
            self._deny(machine, actor, document.id, kind)
        machine.advance(ProtocolStep.AUTHORIZE)

    def _deny(
        self,
        machine: RequestStateMachine,
        actor: Actor,
        document_id: Optional[UUID],
        kind: ErrorKind,
    ) -> None:
        logger.warning("%s denied for actor %s", machine.operation, actor.id)
        # Release the read transaction; the attempt is written on its own
        self._rollback()
        self.ledger.record_unauthorized_attempt(
            actor.id,
            document_id,
            organization_id=actor.organization_id,
            operation=machine.operation,
            outcome=kind,
        )
        raise ProtocolError(kind)

    def _audit(
        self,
        actor: Actor,
        document: Document,
        action: ActivityAction,
        details: Dict[str, Any],
    ) -> None:
        self.ledger.record(
            actor.id,
            document.id,
            action,
            details,
            organization_id=document.organization_id,
        ).unwrap()

    def _commit(self, machine: RequestStateMachine, deadline: Deadline, mutate: Callable[[], Any]):
        """Run ``mutate`` and commit it, or roll everything back."""
        try:
            deadline.check()
            value = mutate()
            self.db.flush()
            deadline.check()
            self.db.commit()
        except ProtocolError:
            self.db.rollback()
            raise
        except TransactionTimeout as e:
            self.db.rollback()
            logger.error("%s exceeded its transaction deadline", machine.operation)
            raise ProtocolError(ErrorKind.INTERNAL, category="timeout") from e
        except Exception as e:
            self.db.rollback()
            logger.exception("Transaction failed in %s", machine.operation)
            raise ProtocolError(ErrorKind.INTERNAL, category=safe_error_category(e)) from e
        machine.advance(ProtocolStep.COMMIT)
        return value

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _document_to_dict(
        self,
        document: Document,
        *,
        permissions: Optional[Dict[str, bool]] = None,
        include_sections: bool = False,
        include_comments: bool = False,
    ) -> Dict[str, Any]:
        """Convert a Document model to dictionary."""
        data = {
            "id": str(document.id),
            "organization_id": str(document.organization_id),
            "department_id": _str(document.department_id),
            "author_id": str(document.author_id),
            "title": document.title,
            "description": document.description,
            "status": document.status,
            "archived_at": _iso(document.archived_at),
            "created_at": _iso(document.created_at),
            "updated_at": _iso(document.updated_at),
        }
        if permissions is not None:
            data["permissions"] = permissions
        if include_sections:
            data["sections"] = [self._section_to_dict(s) for s in document.sections]
        if include_comments:
            data["comments"] = [self._comment_to_dict(c) for c in document.comments]
        return data

    def _section_to_dict(self, section: Section) -> Dict[str, Any]:
        return {
            "id": str(section.id),
            "document_id": str(section.document_id),
            "key": section.key,
            "title": section.title,
            "position": section.position,
            "content": section.content or {},
            "is_complete": bool(section.is_complete),
            "updated_at": _iso(section.updated_at),
        }

    def _comment_to_dict(self, comment: Comment) -> Dict[str, Any]:
        return {
            "id": str(comment.id),
            "document_id": str(comment.document_id),
            "author_id": str(comment.author_id),
            "content": comment.content,
            "is_deleted": bool(comment.is_deleted),
            "created_at": _iso(comment.created_at),
            "updated_at": _iso(comment.updated_at),
        }

    def _activity_to_dict(self, entry) -> Dict[str, Any]:
        return {
            "id": str(entry.id),
            "document_id": _str(entry.document_id),
            "actor_id": str(entry.actor_id),
            "action": entry.action,
            "details": entry.details or {},
            "created_at": _iso(entry.created_at),
        }
