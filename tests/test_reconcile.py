"""
TASKCHAT - Reconciliation Engine Tests
"""

from datetime import datetime, timedelta, timezone

from taskchat.engine.normalize import normalize_title
from taskchat.engine.normalizer import TaskPatch, normalize_operation
from taskchat.engine.operations import ListOperation, TaskPayload
from taskchat.engine.reconcile import (
    add_tasks,
    apply_patch,
    delete_tasks,
    merge_duplicate_lists,
    reconcile,
    update_tasks,
)
from taskchat.engine.resolver import resolve_target
from taskchat.lists.enums import OperationKind, TaskPriority
from taskchat.lists.models import Task
from tests.conftest import make_list

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def run(operation, lists, owner_id="user-1"):
    """Normalize, resolve and reconcile one operation the way a chat turn does."""
    normalized = normalize_operation(operation, NOW)
    return reconcile(normalized, resolve_target(operation, lists), owner_id, NOW)


def tasks(*titles):
    return [TaskPayload(title=t, data={"title": t}) for t in titles]


def active_titles(task_list):
    return [normalize_title(t.title) for t in task_list.tasks if not t.completed]


class TestAdd:
    """Tests for add operations."""

    def test_add_to_existing_skips_pending_duplicates(self):
        """Adding Milk and Eggs to a Shopping list that has Milk only appends Eggs."""
        shopping = make_list("user-1", "Shopping", "Milk")
        operation = ListOperation(title="Shopping", is_add_to_existing=True, tasks=tasks("Milk", "Eggs"))

        result = run(operation, [shopping])

        assert result.created == []
        assert len(result.modified) == 1
        updated = result.modified[0]
        assert updated.id == shopping.id
        assert [t.title for t in updated.tasks] == ["Milk", "Eggs"]
        assert updated.tasks[0].id == shopping.tasks[0].id
        assert updated.updated_at == NOW

    def test_input_list_is_not_mutated(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        run(ListOperation(title="Shopping", is_add_to_existing=True, tasks=tasks("Eggs")), [shopping])
        assert [t.title for t in shopping.tasks] == ["Milk"]

    def test_case_insensitive_duplicates(self):
        shopping = make_list("user-1", "Shopping", "Buy Milk")
        result = run(ListOperation(title="shopping", is_add_to_existing=True, tasks=tasks(" buy  MILK ")), [shopping])
        assert result.changed is False

    def test_completed_task_does_not_block_re_add(self):
        shopping = make_list("user-1", "Shopping", "Milk", completed=("Milk",))
        result = run(ListOperation(title="Shopping", is_add_to_existing=True, tasks=tasks("Milk")), [shopping])

        updated = result.modified[0]
        assert len(updated.tasks) == 2
        assert [t.completed for t in updated.tasks] == [True, False]

    def test_duplicates_within_one_batch(self):
        result = run(ListOperation(title="Shopping", tasks=tasks("Milk", "milk", "Eggs")), [])
        assert [t.title for t in result.created[0].tasks] == ["Milk", "Eggs"]

    def test_completed_duplicates_within_new_batch(self):
        """A new list never starts with two tasks of the same title, even completed ones."""
        batch = [
            TaskPayload(title="Milk", data={"title": "Milk", "completed": True}),
            TaskPayload(title="milk", data={"title": "milk", "completed": True}),
        ]
        result = run(ListOperation(title="Shopping", tasks=batch), [])

        assert [t.title for t in result.created[0].tasks] == ["Milk"]

    def test_create_new_list(self):
        operation = ListOperation(title=" Garden ", category="Home", tasks=tasks("Weed", "Water"))
        result = run(operation, [make_list("user-1", "Shopping")])

        assert result.modified == []
        created = result.created[0]
        assert created.title == "Garden"
        assert created.owner_id == "user-1"
        assert created.category == "Home"
        assert created.created_at == NOW
        assert [t.title for t in created.tasks] == ["Weed", "Water"]

    def test_unflagged_add_to_existing_title_merges(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        result = run(ListOperation(title="Shopping", tasks=tasks("Eggs")), [shopping])

        assert result.created == []
        assert result.modified[0].id == shopping.id

    def test_nothing_new_is_no_change(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        result = run(ListOperation(title="Shopping", is_add_to_existing=True, tasks=tasks("Milk")), [shopping])
        assert result.changed is False

    def test_category_filled_only_when_missing(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        result = run(ListOperation(title="Shopping", is_add_to_existing=True, category="Errands"), [shopping])
        assert result.modified[0].category == "Errands"

        shopping.category = "Food"
        result = run(ListOperation(title="Shopping", is_add_to_existing=True, category="Errands"), [shopping])
        assert result.changed is False

    def test_no_duplicate_active_titles_after_repeated_adds(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        lists = [shopping]
        for batch in (("Eggs", "Milk"), ("EGGS", "Bread"), ("bread", "milk", "Jam")):
            result = run(ListOperation(title="Shopping", is_add_to_existing=True, tasks=tasks(*batch)), lists)
            if result.changed:
                lists = result.modified

        titles = active_titles(lists[0])
        assert len(titles) == len(set(titles))
        assert titles == ["milk", "eggs", "bread", "jam"]


class TestUpdate:
    """Tests for update operations."""

    def test_mark_completed_by_partial_title(self):
        """'strawberries' completes the 'Buy strawberries' task in place."""
        shopping = make_list("user-1", "Shopping", "Buy strawberries", "Milk")
        operation = ListOperation(
            title="Shopping",
            kind=OperationKind.UPDATE,
            tasks=[TaskPayload(title="strawberries", data={"title": "strawberries", "completed": True})],
        )

        result = run(operation, [shopping])

        updated = result.modified[0]
        strawberries = updated.tasks[0]
        assert strawberries.id == shopping.tasks[0].id
        assert strawberries.title == "Buy strawberries"
        assert strawberries.completed is True
        assert strawberries.completed_at == NOW
        assert updated.tasks[1].completed is False

    def test_ambiguous_title_updates_every_match(self):
        """'strawberry' reaches both 'strawberry jelly' and 'strawberry milk'."""
        shopping = make_list("user-1", "Shopping", "strawberry jelly", "strawberry milk", "Bread")
        operation = ListOperation(
            title="Shopping",
            kind=OperationKind.UPDATE,
            tasks=[TaskPayload(title="strawberry", data={"title": "strawberry", "priority": "high"})],
        )

        updated = run(operation, [shopping]).modified[0]

        assert [t.priority for t in updated.tasks] == [TaskPriority.HIGH, TaskPriority.HIGH, TaskPriority.MEDIUM]

    def test_update_keeps_task_ids(self):
        shopping = make_list("user-1", "Shopping", "Milk", "Eggs", "Bread")
        operation = ListOperation(
            title="Shopping",
            kind=OperationKind.UPDATE,
            tasks=[
                TaskPayload(title="Milk", data={"title": "Milk", "newTitle": "Oat milk", "completed": True}),
                TaskPayload(title="Cheese", data={"title": "Cheese", "priority": "low"}),
                TaskPayload(title="eggs", data={"title": "eggs", "dueDate": "2025-01-20"}),
            ],
        )

        updated = run(operation, [shopping]).modified[0]

        assert [t.id for t in updated.tasks] == [t.id for t in shopping.tasks]

    def test_exact_match_wins_over_substring(self):
        task_list = make_list("user-1", "Shopping", "Milk", "Oat milk")
        updated = update_tasks(task_list, [TaskPatch(title="milk", changes={"priority": TaskPriority.HIGH})], NOW)
        assert [t.priority for t in updated.tasks] == [TaskPriority.HIGH, TaskPriority.MEDIUM]

    def test_every_exact_match_is_updated(self):
        task_list = make_list("user-1", "Shopping", "Milk", "Bread")
        task_list.tasks.append(Task.create(title="milk"))
        updated = update_tasks(task_list, [TaskPatch(title="Milk", changes={"priority": TaskPriority.LOW})], NOW)
        assert [t.priority for t in updated.tasks] == [TaskPriority.LOW, TaskPriority.MEDIUM, TaskPriority.LOW]

    def test_unmatched_update_is_noop(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        operation = ListOperation(
            title="Shopping",
            kind=OperationKind.UPDATE,
            tasks=[TaskPayload(title="Cheese", data={"title": "Cheese", "priority": "high"})],
        )
        assert run(operation, [shopping]).changed is False

    def test_update_never_creates_list(self):
        operation = ListOperation(title="Garden", kind=OperationKind.UPDATE, tasks=tasks("Weed"))
        result = run(operation, [make_list("user-1", "Shopping")])
        assert result.changed is False

    def test_rename_list(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        operation = ListOperation(title="Shopping", kind=OperationKind.UPDATE, new_title="Groceries")

        result = run(operation, [shopping])

        assert result.modified[0].title == "Groceries"
        assert result.modified[0].id == shopping.id

    def test_uncomplete_clears_timestamp(self):
        task = make_list("user-1", "Shopping", "Milk", completed=("Milk",)).tasks[0]
        patched = apply_patch(task, {"completed": False}, NOW)
        assert patched.completed is False
        assert patched.completed_at is None

    def test_recomplete_keeps_original_timestamp(self):
        task = make_list("user-1", "Shopping", "Milk", completed=("Milk",)).tasks[0]
        patched = apply_patch(task, {"completed": True}, NOW)
        assert patched.completed_at == task.completed_at

    def test_patch_keeps_id(self):
        task = Task.create(title="Milk")
        patched = apply_patch(task, {"title": "Oat milk", "id": "other"}, NOW)
        assert patched.id == task.id
        assert patched.title == "Oat milk"


class TestDelete:
    """Tests for task and list deletion."""

    def test_delete_by_exact_title(self):
        shopping = make_list("user-1", "Shopping", "Milk", "Oat milk", "Eggs")
        operation = ListOperation(title="Shopping", kind=OperationKind.DELETE, titles_to_delete=["MILK"])

        result = run(operation, [shopping])

        assert [t.title for t in result.modified[0].tasks] == ["Oat milk", "Eggs"]

    def test_delete_leaves_other_tasks_untouched(self):
        shopping = make_list("user-1", "Shopping", "Milk", "Eggs", "milk", "Bread")
        operation = ListOperation(title="Shopping", kind=OperationKind.DELETE, titles_to_delete=["Milk", "Bread"])

        updated = run(operation, [shopping]).modified[0]

        assert updated.tasks == [shopping.tasks[1]]

    def test_delete_unknown_title_is_noop(self):
        shopping = make_list("user-1", "Shopping", "Milk")
        operation = ListOperation(title="Shopping", kind=OperationKind.DELETE, titles_to_delete=["Cheese"])
        assert run(operation, [shopping]).changed is False

    def test_delete_removes_completed_too(self):
        task_list = make_list("user-1", "Shopping", "Milk", completed=("Milk",))
        assert delete_tasks(task_list, ["milk"]).tasks == []

    def test_delete_list_removes_duplicates(self):
        first = make_list("user-1", "Shopping", "Milk")
        second = make_list("user-1", "shopping", "Eggs")
        other = make_list("user-1", "Work")
        operation = ListOperation(title="Shopping", kind=OperationKind.DELETE_LIST)

        result = run(operation, [first, other, second])

        assert result.deleted == [first, second]
        assert result.created == []
        assert result.modified == []

    def test_delete_list_missing_is_noop(self):
        operation = ListOperation(title="Garden", kind=OperationKind.DELETE_LIST)
        assert run(operation, [make_list("user-1", "Shopping")]).changed is False


class TestMergeDuplicates:
    """Tests for the duplicate-list cleanup pass."""

    def test_merges_into_oldest(self):
        oldest = make_list("user-1", "Shopping", "Milk")
        oldest.created_at = NOW - timedelta(days=2)
        newer = make_list("user-1", "SHOPPING", "milk", "Eggs")
        newer.created_at = NOW - timedelta(days=1)
        newer.category = "Errands"
        work = make_list("user-1", "Work", "Email")

        result = merge_duplicate_lists([newer, work, oldest], NOW)

        assert result.deleted == [newer]
        keeper = result.modified[0]
        assert keeper.id == oldest.id
        assert [t.title for t in keeper.tasks] == ["Milk", "Eggs"]
        assert keeper.category == "Errands"
        assert keeper.updated_at == NOW

    def test_no_duplicates(self):
        result = merge_duplicate_lists([make_list("user-1", "Shopping"), make_list("user-1", "Work")], NOW)
        assert result.changed is False


class TestAddTasksHelper:
    def test_returns_added_tasks(self):
        task_list = make_list("user-1", "Shopping", "Milk")
        updated, added = add_tasks(task_list, [Task.create(title="Eggs"), Task.create(title="milk")])
        assert [t.title for t in added] == ["Eggs"]
        assert len(updated.tasks) == 2
