"""Integration tests for the document service against a real session.

Exercises the full request protocol: validation, rate limiting, fetching,
authorization, atomic commit with the activity log, and the audit trail
left by rejected requests.
"""

from uuid import UUID, uuid4

import pytest

from docguard.core.errors import ErrorKind
from docguard.db.models import ActivityLog, Comment, Document, Section
from tests.factories import create_comment, create_document, create_section


pytestmark = pytest.mark.integration


def entries(db_session, document_id=None):
    query = db_session.query(ActivityLog)
    if document_id is not None:
        query = query.filter(ActivityLog.document_id == document_id)
    return query.order_by(ActivityLog.created_at.asc()).all()


def actions(db_session, document_id=None):
    return [e.action for e in entries(db_session, document_id)]


def reload(db_session, document_id):
    db_session.expire_all()
    return db_session.get(Document, document_id)


def assert_failed(result, kind):
    assert not result.ok
    assert result.value is None
    assert result.error.kind == kind


class TestUpdateDocument:
    """Update authorization and audit behaviour."""

    def test_author_updates_own_document(self, service, world, db_session):
        result = service.update_document(world.author, world.doc_id, {"title": "Reduce changeover time"})

        assert result.ok
        assert result.value["title"] == "Reduce changeover time"
        assert result.value["permissions"]["can_edit"] is True

        log = entries(db_session, world.document.id)
        assert [e.action for e in log] == ["updated"]
        assert log[0].actor_id == world.author.id
        assert log[0].details == {"fields": ["title"], "title_length": 22}

    def test_viewer_is_forbidden(self, service, world, db_session):
        result = service.update_document(world.viewer, world.doc_id, {"title": "Hijacked"})

        assert_failed(result, ErrorKind.FORBIDDEN)
        assert reload(db_session, world.document.id).title == "Reduce line downtime"

        log = entries(db_session, world.document.id)
        assert [e.action for e in log] == ["unauthorized_attempt"]
        assert log[0].details == {"operation": "update_document", "outcome": "forbidden"}

    def test_other_member_is_forbidden(self, service, world):
        result = service.update_document(world.member, world.doc_id, {"title": "Mine now"})
        assert_failed(result, ErrorKind.FORBIDDEN)

    def test_organization_policy_lets_members_edit_all(self, service, world, db_session):
        world.org.settings = {"allow_members_edit_all": True}
        db_session.commit()

        result = service.update_document(world.member, world.doc_id, {"status": "in_progress"})

        assert result.ok
        assert result.value["status"] == "in_progress"

    def test_foreign_actor_gets_not_found(self, service, world, db_session):
        result = service.update_document(world.foreign, world.doc_id, {"title": "Cross tenant"})

        assert_failed(result, ErrorKind.NOT_FOUND)
        assert reload(db_session, world.document.id).title == "Reduce line downtime"

        log = entries(db_session, world.document.id)
        assert [e.action for e in log] == ["unauthorized_attempt"]
        assert log[0].details["outcome"] == "not_found"
        assert log[0].organization_id == world.other_org.id

    def test_same_org_outsider_gets_not_found(self, service, world):
        result = service.update_document(world.outsider, world.doc_id, {"title": "Ops takeover"})
        assert_failed(result, ErrorKind.NOT_FOUND)

    def test_manager_edits_any_document(self, service, world):
        result = service.update_document(world.manager, world.doc_id, {"description": "Q3 focus"})
        assert result.ok
        assert result.value["description"] == "Q3 focus"

    def test_missing_document_leaves_no_trace(self, service, world, db_session):
        result = service.update_document(world.author, str(uuid4()), {"title": "Ghost"})

        assert_failed(result, ErrorKind.NOT_FOUND)
        assert entries(db_session) == []

    def test_unauthenticated(self, service, world, db_session):
        result = service.update_document(None, world.doc_id, {"title": "Anon"})

        assert_failed(result, ErrorKind.UNAUTHENTICATED)
        assert entries(db_session) == []

    @pytest.mark.parametrize("patch", [
        {"title": ""},
        {"title": "x" * 201},
        {"status": "published"},
        {"author_id": "someone"},
        {},
    ])
    def test_invalid_patch(self, service, world, db_session, patch):
        result = service.update_document(world.author, world.doc_id, patch)

        assert_failed(result, ErrorKind.INPUT_INVALID)
        assert entries(db_session) == []

    def test_invalid_identifier(self, service, world):
        assert_failed(service.update_document(world.author, "not-an-id", {"title": "x"}), ErrorKind.INPUT_INVALID)

    def test_unchanged_values_are_not_listed(self, service, world, db_session):
        result = service.update_document(world.author, world.doc_id, {"title": "Reduce line downtime"})

        assert result.ok
        assert entries(db_session, world.document.id)[0].details == {"fields": []}


class TestArchive:
    """Archive, restore and archived visibility."""

    def test_archived_document_is_hidden(self, service, world, db_session):
        assert service.archive_document(world.author, world.doc_id).ok

        assert_failed(service.get_document(world.author, world.doc_id), ErrorKind.NOT_FOUND)
        assert_failed(
            service.update_document(world.author, world.doc_id, {"title": "Edit"}),
            ErrorKind.NOT_FOUND,
        )
        assert_failed(service.add_comment(world.member, world.doc_id, "Hello?"), ErrorKind.NOT_FOUND)
        assert actions(db_session, world.document.id) == ["archived"]

    def test_archive_is_idempotent(self, service, world, db_session):
        first = service.archive_document(world.author, world.doc_id)
        second = service.archive_document(world.author, world.doc_id)

        assert first.ok and second.ok
        assert second.value["archived_at"] is not None
        log = entries(db_session, world.document.id)
        assert [e.action for e in log] == ["archived", "archived"]
        assert [e.details["was_archived"] for e in log] == [False, True]

    def test_unarchive_round_trip(self, service, world, db_session):
        before = service.get_document(world.author, world.doc_id).value

        service.archive_document(world.author, world.doc_id)
        result = service.unarchive_document(world.author, world.doc_id)

        assert result.ok
        assert result.value["archived_at"] is None
        after = service.get_document(world.author, world.doc_id).value
        assert after == before
        assert actions(db_session, world.document.id) == ["archived", "unarchived"]

    def test_archive_keeps_updated_at(self, service, world):
        before = service.get_document(world.author, world.doc_id).value["updated_at"]

        archived = service.archive_document(world.author, world.doc_id)

        assert archived.value["archived_at"] is not None
        assert archived.value["updated_at"] == before

    def test_viewer_cannot_archive(self, service, world, db_session):
        result = service.archive_document(world.viewer, world.doc_id)

        assert_failed(result, ErrorKind.FORBIDDEN)
        assert reload(db_session, world.document.id).archived_at is None

    def test_manager_may_view_archived(self, service, world):
        service.archive_document(world.author, world.doc_id)

        result = service.get_document(world.manager, world.doc_id, include_archived=True)

        assert result.ok
        assert result.value["archived_at"] is not None

    def test_member_may_not_view_archived(self, service, world):
        service.archive_document(world.author, world.doc_id)
        result = service.get_document(world.member, world.doc_id, include_archived=True)
        assert_failed(result, ErrorKind.NOT_FOUND)

    def test_policy_hides_archived_from_managers(self, service, world, db_session):
        world.org.settings = {"managers_view_archived": False}
        db_session.commit()
        service.archive_document(world.author, world.doc_id)

        result = service.get_document(world.manager, world.doc_id, include_archived=True)
        assert_failed(result, ErrorKind.NOT_FOUND)


class TestDeleteDocument:
    """Hard delete with a snapshot in the activity log."""

    def test_delete_records_snapshot_then_removes(self, service, world, db_session):
        doc_uuid = world.document.id
        create_comment(db_session, document=world.document, author=world.users.member)
        db_session.commit()

        result = service.delete_document(world.author, world.doc_id)

        assert result.ok
        assert result.value["title"] == "Reduce line downtime"
        assert_failed(service.get_document(world.author, world.doc_id), ErrorKind.NOT_FOUND)

        db_session.expire_all()
        assert db_session.get(Document, doc_uuid) is None
        assert db_session.query(Section).filter(Section.document_id == doc_uuid).count() == 0
        assert db_session.query(Comment).filter(Comment.document_id == doc_uuid).count() == 0

        log = entries(db_session, doc_uuid)
        assert [e.action for e in log] == ["deleted"]
        assert log[0].details["title"] == "Reduce line downtime"
        assert log[0].details["section_count"] == 2
        assert log[0].details["comment_count"] == 1
        assert log[0].details["archived"] is False

    def test_delete_document_with_longest_multibyte_title(self, service, world, db_session):
        title = "\U0001F600" * 200
        created = service.create_document(world.author, str(world.eng.id), title)
        assert created.ok

        result = service.delete_document(world.author, created.value["id"])

        assert result.ok
        log = entries(db_session, UUID(created.value["id"]))
        assert [e.action for e in log] == ["created", "deleted"]
        assert log[1].details["title"] == title

    def test_archived_document_can_be_deleted(self, service, world):
        service.archive_document(world.author, world.doc_id)
        assert service.delete_document(world.manager, world.doc_id).ok

    def test_viewer_cannot_delete(self, service, world, db_session):
        assert_failed(service.delete_document(world.viewer, world.doc_id), ErrorKind.FORBIDDEN)
        assert reload(db_session, world.document.id) is not None


class TestCreateDocument:
    def test_member_creates_with_default_sections(self, service, world, db_session, settings):
        result = service.create_document(world.member, str(world.eng.id), " Scrap rate ", "Line 4")

        assert result.ok
        doc = result.value
        assert doc["title"] == "Scrap rate"
        assert doc["status"] == "draft"
        assert doc["author_id"] == str(world.member.id)
        assert [s["key"] for s in doc["sections"]] == settings.default_sections_list
        assert doc["permissions"]["can_edit"] is True

        log = entries(db_session, UUID(doc["id"]))
        assert [e.action for e in log] == ["created"]
        assert log[0].details["section_count"] == 7

    def test_viewer_is_forbidden(self, service, world, db_session):
        result = service.create_document(world.viewer, str(world.eng.id), "Nope")

        assert_failed(result, ErrorKind.FORBIDDEN)
        log = entries(db_session)
        assert [e.action for e in log] == ["unauthorized_attempt"]
        assert log[0].document_id is None

    def test_foreign_department_is_not_found(self, service, world):
        result = service.create_document(world.foreign, str(world.eng.id), "Nope")
        assert_failed(result, ErrorKind.NOT_FOUND)

    def test_missing_department(self, service, world, db_session):
        assert_failed(service.create_document(world.member, str(uuid4()), "Nope"), ErrorKind.NOT_FOUND)
        assert entries(db_session) == []


class TestReads:
    def test_get_returns_sections_comments_and_permissions(self, service, world, db_session):
        create_comment(db_session, document=world.document, author=world.users.member)
        db_session.commit()

        result = service.get_document(world.viewer, world.doc_id)

        assert result.ok
        assert [s["key"] for s in result.value["sections"]] == ["background", "goal"]
        assert len(result.value["comments"]) == 1
        assert result.value["permissions"] == {
            "can_edit": False,
            "can_delete": False,
            "can_archive": False,
            "can_comment": False,
        }

    def test_get_by_foreign_actor(self, service, world, db_session):
        assert_failed(service.get_document(world.foreign, world.doc_id), ErrorKind.NOT_FOUND)
        assert actions(db_session, world.document.id) == ["unauthorized_attempt"]

    def test_reads_write_no_activity(self, service, world, db_session):
        service.get_document(world.author, world.doc_id)
        service.list_documents(world.author)
        assert entries(db_session) == []

    def test_list_is_scoped_to_actor(self, service, world, db_session):
        create_document(db_session, author=world.users.outsider, department=world.ops, title="Ops plan")
        create_document(db_session, author=world.users.foreign, department=world.other_dept, title="Globex plan")
        db_session.commit()

        titles = [d["title"] for d in service.list_documents(world.author).value]
        assert titles == ["Reduce line downtime"]

        foreign_titles = [d["title"] for d in service.list_documents(world.foreign).value]
        assert foreign_titles == ["Globex plan"]

    def test_list_excludes_archived_unless_manager_asks(self, service, world):
        service.archive_document(world.author, world.doc_id)

        assert service.list_documents(world.author).value == []
        assert service.list_documents(world.member, {"include_archived": True}).value == []
        listed = service.list_documents(world.manager, {"include_archived": True}).value
        assert [d["id"] for d in listed] == [world.doc_id]

    def test_list_filters(self, service, world, db_session):
        create_document(db_session, author=world.users.author, department=world.eng, title="100% uptime")
        db_session.commit()

        by_search = service.list_documents(world.author, {"search": "%"}).value
        assert [d["title"] for d in by_search] == ["100% uptime"]

        by_status = service.list_documents(world.author, {"status": "completed"}).value
        assert by_status == []

        by_department = service.list_documents(world.author, {"department_id": str(world.ops.id)}).value
        assert by_department == []

    def test_search_is_rate_limited(self, service, world, clock):
        for _ in range(20):
            assert service.list_documents(world.author, {"search": "line"}).ok

        limited = service.list_documents(world.author, {"search": "line"})
        assert_failed(limited, ErrorKind.RATE_LIMITED)
        assert limited.error.retry_after == 60

        # Plain listings use their own budget
        assert service.list_documents(world.author).ok

        clock.advance(61)
        assert service.list_documents(world.author, {"search": "line"}).ok


class TestSections:
    def test_update_section(self, service, world, db_session):
        section = world.document.sections[0]

        result = service.update_section(
            world.author, world.doc_id, str(section.id), {"text": "Line 3 stops twice per shift"}
        )

        assert result.ok
        assert result.value["is_complete"] is True
        log = entries(db_session, world.document.id)
        assert [e.action for e in log] == ["section_updated"]
        assert log[0].details["section_key"] == "background"
        assert "text" not in log[0].details

    def test_oversized_content_is_rejected(self, service, world, db_session):
        section_id = world.document.sections[0].id

        result = service.update_section(
            world.author, world.doc_id, str(section_id), {"text": "x" * (60 * 1024)}
        )

        assert_failed(result, ErrorKind.INPUT_INVALID)
        db_session.expire_all()
        assert db_session.get(Section, section_id).content == {}
        assert entries(db_session) == []

    def test_section_of_another_document(self, service, world, db_session):
        other = create_document(db_session, author=world.users.author, department=world.eng)
        foreign_section = create_section(db_session, document=other, key="goal")
        db_session.commit()

        result = service.update_section(world.author, world.doc_id, str(foreign_section.id), {"a": 1})
        assert_failed(result, ErrorKind.NOT_FOUND)

    def test_viewer_cannot_edit_section(self, service, world):
        section_id = str(world.document.sections[0].id)
        result = service.update_section(world.viewer, world.doc_id, section_id, {"a": 1})
        assert_failed(result, ErrorKind.FORBIDDEN)


class TestComments:
    def test_member_comments(self, service, world, db_session):
        result = service.add_comment(world.member, world.doc_id, "Check the conveyor sensor")

        assert result.ok
        assert result.value["author_id"] == str(world.member.id)
        log = entries(db_session, world.document.id)
        assert [e.action for e in log] == ["comment_added"]
        assert log[0].details["content_length"] == len("Check the conveyor sensor")

    def test_viewer_cannot_comment(self, service, world):
        assert_failed(service.add_comment(world.viewer, world.doc_id, "Hi"), ErrorKind.FORBIDDEN)

    def test_empty_comment(self, service, world):
        assert_failed(service.add_comment(world.member, world.doc_id, "   "), ErrorKind.INPUT_INVALID)

    def test_author_deletes_own_comment(self, service, world, db_session):
        comment = create_comment(db_session, document=world.document, author=world.users.member)
        db_session.commit()

        result = service.delete_comment(world.member, str(comment.id))

        assert result.ok
        assert result.value["is_deleted"] is True
        assert result.value["content"] == "[deleted]"
        assert actions(db_session, world.document.id) == ["comment_deleted"]

    def test_delete_twice_is_accepted(self, service, world, db_session):
        comment = create_comment(db_session, document=world.document, author=world.users.member)
        db_session.commit()
        comment_id = str(comment.id)

        service.delete_comment(world.member, comment_id)
        assert service.delete_comment(world.member, comment_id).ok
        log = entries(db_session, world.document.id)
        assert [e.details["already_deleted"] for e in log] == [False, True]

    def test_other_member_is_forbidden(self, service, world, db_session):
        comment = create_comment(db_session, document=world.document, author=world.users.member)
        db_session.commit()

        assert_failed(service.delete_comment(world.author, str(comment.id)), ErrorKind.FORBIDDEN)

    def test_manager_moderates(self, service, world, db_session):
        comment = create_comment(db_session, document=world.document, author=world.users.member)
        db_session.commit()

        assert service.delete_comment(world.manager, str(comment.id)).ok

    def test_foreign_actor(self, service, world, db_session):
        comment = create_comment(db_session, document=world.document, author=world.users.member)
        db_session.commit()

        assert_failed(service.delete_comment(world.foreign, str(comment.id)), ErrorKind.NOT_FOUND)


class TestActivity:
    def test_list_activity(self, service, world):
        service.update_document(world.author, world.doc_id, {"title": "Renamed"})
        service.add_comment(world.member, world.doc_id, "Nice")

        result = service.list_activity(world.viewer, world.doc_id)

        assert result.ok
        assert [e["action"] for e in result.value] == ["updated", "comment_added"]
        assert result.value[0]["actor_id"] == str(world.author.id)

    def test_foreign_actor(self, service, world):
        assert_failed(service.list_activity(world.foreign, world.doc_id), ErrorKind.NOT_FOUND)

    @pytest.mark.parametrize("limit", [0, 501, "10"])
    def test_invalid_limit(self, service, world, limit):
        assert_failed(service.list_activity(world.author, world.doc_id, limit), ErrorKind.INPUT_INVALID)


class TestAtomicity:
    """A mutation and its activity entry commit together or not at all."""

    def test_ledger_failure_rolls_back_mutation(self, service, world, db_session, monkeypatch):
        monkeypatch.setattr(service.ledger, "max_details_bytes", 10)

        result = service.update_document(world.author, world.doc_id, {"title": "Never stored"})

        assert_failed(result, ErrorKind.INTERNAL)
        assert reload(db_session, world.document.id).title == "Reduce line downtime"
        assert entries(db_session) == []

    def test_deadline_exceeded_during_commit(self, service, world, db_session, clock, monkeypatch):
        original = service.ledger.record

        def slow_record(*args, **kwargs):
            clock.advance(30)
            return original(*args, **kwargs)

        monkeypatch.setattr(service.ledger, "record", slow_record)

        result = service.update_document(world.author, world.doc_id, {"title": "Too slow"})

        assert_failed(result, ErrorKind.INTERNAL)
        assert result.error.category == "timeout"
        assert reload(db_session, world.document.id).title == "Reduce line downtime"
        assert entries(db_session) == []

    def test_deadline_exceeded_while_fetching(self, service, world, db_session, clock, monkeypatch):
        original = service.graph.get_document

        def slow_get(document_id):
            clock.advance(30)
            return original(document_id)

        monkeypatch.setattr(service.graph, "get_document", slow_get)

        result = service.archive_document(world.author, world.doc_id)

        assert_failed(result, ErrorKind.INTERNAL)
        assert result.error.category == "timeout"
        assert reload(db_session, world.document.id).archived_at is None
