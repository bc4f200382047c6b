"""
Test the agent workflow operations: signup_for_task and move_task
"""
import pytest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch
from sqlalchemy.dialects import postgresql

from tinytask.core.errors import NotFoundError, StorageError, ValidationError
from tinytask.core.services import TaskService
from tinytask.core.types import TaskStatus, TaskWithRelations


class TestSignupForTask:
    """Test TaskService.signup_for_task"""

    def test_claims_highest_priority_idle_task(self, task_service):
        task_service.create({"title": "low", "assigned_to": "agent-1", "priority": 1})
        high = task_service.create({"title": "high", "assigned_to": "agent-1", "priority": 8})
        task_service.create({"title": "foreign", "assigned_to": "agent-2", "priority": 99})

        claimed = task_service.signup_for_task("agent-1")

        assert isinstance(claimed, TaskWithRelations)
        assert claimed.id == high.id
        assert claimed.status == TaskStatus.WORKING
        assert task_service.get(high.id).status == TaskStatus.WORKING

    def test_oldest_wins_on_equal_priority(self, task_service):
        first = task_service.create({"title": "first", "assigned_to": "agent"})
        task_service.create({"title": "second", "assigned_to": "agent"})

        assert task_service.signup_for_task("agent").id == first.id

    def test_skips_working_complete_and_archived(self, task_service):
        task_service.create({"title": "working", "assigned_to": "agent", "status": "working", "priority": 9})
        task_service.create({"title": "complete", "assigned_to": "agent", "status": "complete", "priority": 9})
        archived = task_service.create({"title": "archived", "assigned_to": "agent", "priority": 9})
        task_service.archive(archived.id)
        idle = task_service.create({"title": "idle", "assigned_to": "agent"})

        assert task_service.signup_for_task("agent").id == idle.id

    def test_returns_none_when_queue_has_no_idle_task(self, task_service):
        task_service.create({"title": "busy", "assigned_to": "agent", "status": "working"})

        assert task_service.signup_for_task("agent") is None
        assert task_service.signup_for_task("nobody") is None

    def test_successive_signups_walk_the_queue(self, task_service):
        ids = [
            task_service.create({"title": f"T{i}", "assigned_to": "agent", "priority": 3 - i}).id
            for i in range(3)
        ]

        claimed = [task_service.signup_for_task("agent").id for _ in range(3)]

        assert claimed == ids
        assert task_service.signup_for_task("agent") is None

    def test_includes_relations(self, task_service, comment_service, link_service):
        task = task_service.create({"title": "T", "assigned_to": "agent"})
        comment_service.create({"task_id": task.id, "content": "context"})
        link_service.create({"task_id": task.id, "url": "https://example.com/brief"})

        claimed = task_service.signup_for_task("agent")

        assert [c.content for c in claimed.comments] == ["context"]
        assert [lk.url for lk in claimed.links] == ["https://example.com/brief"]

    def test_rejects_blank_agent(self, task_service):
        with pytest.raises(ValidationError, match="Agent name is required"):
            task_service.signup_for_task("  ")

    @pytest.mark.slow
    def test_concurrent_signups_never_claim_the_same_task(self, task_service):
        """Selection and claim share one locked transaction, so claims are disjoint"""
        for i in range(8):
            task_service.create({"title": f"T{i}", "assigned_to": "swarm"})

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: task_service.signup_for_task("swarm"), range(8)))

        claimed_ids = [task.id for task in results if task is not None]
        assert len(claimed_ids) == 8
        assert len(set(claimed_ids)) == 8
        assert all(t.status == TaskStatus.WORKING for t in task_service.get_queue("swarm"))

    @pytest.mark.slow
    def test_concurrent_signups_on_memory_database(self, memory_client):
        """Threads sharing the single in-memory connection take turns"""
        service = TaskService(memory_client)
        for i in range(8):
            service.create({"title": f"T{i}", "assigned_to": "swarm"})

        def claim_or_list(n):
            if n % 2:
                return service.list({"assigned_to": "swarm"})
            return service.signup_for_task("swarm")

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(claim_or_list, range(16)))

        claimed_ids = [r.id for r in results[0::2] if r is not None]
        assert len(claimed_ids) == 8
        assert len(set(claimed_ids)) == 8
        assert all(len(listed) == 8 for listed in results[1::2])

    def test_claim_selection_locks_the_row(self, task_service, db_client):
        task_service.create({"title": "T", "assigned_to": "agent"})

        with patch.object(db_client, "query_one", wraps=db_client.query_one) as spy:
            task_service.signup_for_task("agent")

        selection = spy.call_args_list[0].args[0]
        assert "FOR UPDATE SKIP LOCKED" in str(selection.compile(dialect=postgresql.dialect()))

    def test_claim_only_matches_a_still_idle_row(self, task_service, db_client):
        """A row taken by another caller between selection and claim is not claimed twice"""
        taken = task_service.create({"title": "taken", "assigned_to": "agent", "status": "working"})
        real_query_one = db_client.query_one
        calls = []

        def stale_selection(statement, params=None):
            if not calls:
                calls.append(statement)
                return {"id": taken.id}
            return real_query_one(statement, params)

        with patch.object(db_client, "query_one", side_effect=stale_selection):
            assert task_service.signup_for_task("agent") is None

        assert task_service.get(taken.id).updated_at == taken.updated_at


class TestMoveTask:
    """Test TaskService.move_task"""

    def test_move_reassigns_resets_and_comments(self, task_service):
        task = task_service.create({"title": "T", "assigned_to": "alice", "status": "working"})

        moved = task_service.move_task(task.id, "alice", "bob", "  over to you  ")

        assert moved.assigned_to == "bob"
        assert moved.status == TaskStatus.IDLE
        assert len(moved.comments) == 1
        assert moved.comments[0].content == "over to you"
        assert moved.comments[0].created_by == "alice"
        assert [t.id for t in task_service.get_queue("bob")] == [task.id]
        assert task_service.get_queue("alice") == []

    def test_move_idle_task(self, task_service):
        task = task_service.create({"title": "T", "assigned_to": "alice"})
        assert task_service.move_task(task.id, "alice", "bob", "handoff").assigned_to == "bob"

    def test_move_missing_task(self, task_service):
        with pytest.raises(NotFoundError, match="Task not found: 404"):
            task_service.move_task(404, "alice", "bob", "handoff")

    def test_move_by_wrong_agent(self, task_service, comment_service):
        task = task_service.create({"title": "T", "assigned_to": "alice"})

        with pytest.raises(ValidationError, match="is not assigned to mallory"):
            task_service.move_task(task.id, "mallory", "bob", "stealing this")

        assert task_service.get(task.id).assigned_to == "alice"
        assert comment_service.list_by_task(task.id) == []

    def test_move_complete_task_is_rejected(self, task_service, comment_service):
        task = task_service.create({"title": "T", "assigned_to": "alice", "status": "complete"})

        with pytest.raises(ValidationError, match="cannot be transferred"):
            task_service.move_task(task.id, "alice", "bob", "too late")

        assert task_service.get(task.id).status == TaskStatus.COMPLETE
        assert comment_service.list_by_task(task.id) == []

    @pytest.mark.parametrize(
        "new_agent,comment,message",
        [
            ("", "handoff", "New agent is required"),
            ("bob", "   ", "Handoff comment is required"),
        ],
    )
    def test_move_requires_agent_and_comment(self, task_service, new_agent, comment, message):
        task = task_service.create({"title": "T", "assigned_to": "alice"})

        with pytest.raises(ValidationError, match=message):
            task_service.move_task(task.id, "alice", new_agent, comment)

        assert task_service.get(task.id).assigned_to == "alice"

    @pytest.mark.parametrize("current_agent", [None, "", "   "])
    def test_move_requires_current_agent(self, task_service, comment_service, current_agent):
        """An unassigned task cannot be handed over by an anonymous caller"""
        task = task_service.create({"title": "Unassigned"})

        with pytest.raises(ValidationError, match="Current agent is required"):
            task_service.move_task(task.id, current_agent, "bob", "handoff")

        assert task_service.get(task.id).assigned_to is None
        assert comment_service.list_by_task(task.id) == []

    def test_failed_comment_insert_rolls_back_reassignment(self, task_service, comment_service, db_client):
        task = task_service.create({"title": "T", "assigned_to": "alice", "status": "working"})
        real_execute = db_client.execute

        def fail_on_insert(statement, params=None):
            if statement.is_insert:
                raise StorageError("Execute failed: disk I/O error")
            return real_execute(statement, params)

        with patch.object(db_client, "execute", side_effect=fail_on_insert):
            with pytest.raises(StorageError, match="disk I/O error"):
                task_service.move_task(task.id, "alice", "bob", "handoff")

        unchanged = task_service.get(task.id)
        assert unchanged.assigned_to == "alice"
        assert unchanged.status == TaskStatus.WORKING
        assert unchanged.updated_at == task.updated_at
        assert comment_service.list_by_task(task.id) == []


class TestAgentWorkflow:
    """Create, claim, hand off, claim again, complete"""

    def test_full_handoff_cycle(self, task_service, comment_service, link_service):
        task = task_service.create(
            {"title": "Draft the report", "assigned_to": "researcher", "created_by": "planner"}
        )

        claimed = task_service.signup_for_task("researcher")
        assert claimed.id == task.id
        link_service.create(
            {"task_id": task.id, "url": "/artifacts/notes.md", "created_by": "researcher"}
        )

        moved = task_service.move_task(task.id, "researcher", "writer", "notes attached")
        assert moved.status == TaskStatus.IDLE
        assert [lk.url for lk in moved.links] == ["/artifacts/notes.md"]

        claimed = task_service.signup_for_task("writer")
        assert claimed.id == task.id
        assert claimed.comments[-1].content == "notes attached"

        done = task_service.update(task.id, {"status": "complete"})
        assert done.status == TaskStatus.COMPLETE
        assert task_service.get_queue("writer") == []

        archived = task_service.archive(task.id)
        assert archived.status == TaskStatus.COMPLETE
        assert task_service.list() == []
