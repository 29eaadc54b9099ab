import math

import pytest

from taskmanager.errors import ValidationError
from taskmanager.models import TaskPriority, TaskStatus, UserRole
from taskmanager.query import MAX_PAGE, PredicateSet, TaskListingParams, TaskListingQuery, list_tasks

from tests.conftest import make_task, make_user


def test_listing_params_defaults_and_offset():
    params = TaskListingParams()
    assert (params.page, params.limit, params.sort_by, params.sort_order) == (1, 10, "created_at", "desc")
    assert params.offset == 0
    assert TaskListingParams(page=3, limit=20).offset == 40


@pytest.mark.parametrize(
    "kwargs",
    [
        {"page": 0},
        {"page": MAX_PAGE + 1},
        {"limit": 0},
        {"limit": 101},
        {"sort_by": "title"},
        {"sort_order": "sideways"},
    ],
)
def test_listing_params_reject_invalid_values(kwargs):
    with pytest.raises(ValidationError):
        TaskListingParams(**kwargs)


def test_blank_search_is_ignored():
    assert TaskListingParams(search="   ").search is None


def test_predicate_set_ignores_missing_predicates():
    predicates = PredicateSet().add(None)
    assert len(predicates) == 0


def test_search_value_is_bound_not_interpolated(alice):
    query = TaskListingQuery(alice, TaskListingParams(search="'; DROP TABLE tasks; --"))
    compiled = query.page_statement().compile()
    assert "DROP TABLE" not in str(compiled)
    assert "'; DROP TABLE tasks; --" in compiled.params.values()


def test_non_admin_listing_only_contains_own_or_assigned(db_session, alice, bob):
    carol = make_user(db_session, "carol@example.com")
    mine = make_task(db_session, alice, "mine")
    assigned = make_task(db_session, bob, "assigned to alice", assignee=alice)
    make_task(db_session, bob, "bob only")
    make_task(db_session, carol, "carol for bob", assignee=bob)

    rows, pagination = list_tasks(db_session, alice, TaskListingParams())

    ids = {task.id for task, _, _ in rows}
    assert ids == {mine.id, assigned.id}
    assert pagination.total == 2
    for task, _, _ in rows:
        assert alice.id in (task.created_by, task.assigned_to)


def test_admin_listing_is_unrestricted(db_session, alice, bob):
    admin = make_user(db_session, "root@example.com", role=UserRole.ADMIN)
    make_task(db_session, alice, "a")
    make_task(db_session, bob, "b")

    rows, pagination = list_tasks(db_session, admin, TaskListingParams())
    assert len(rows) == 2
    assert pagination.total == 2


def test_listing_joins_creator_and_assignee_emails(db_session, alice, bob):
    make_task(db_session, alice, "delegated", assignee=bob)
    make_task(db_session, alice, "solo")

    rows, _ = list_tasks(db_session, alice, TaskListingParams(sort_order="asc"))
    emails = {task.title: (creator, assignee) for task, creator, assignee in rows}
    assert emails["delegated"] == ("alice@example.com", "bob@example.com")
    assert emails["solo"] == ("alice@example.com", None)


def test_filters_are_conjunctive(db_session, alice):
    make_task(db_session, alice, "Write report", status=TaskStatus.PENDING, priority=TaskPriority.HIGH)
    make_task(db_session, alice, "Review report", status=TaskStatus.COMPLETED, priority=TaskPriority.HIGH)
    make_task(db_session, alice, "Plan", description="quarterly REPORT", status=TaskStatus.PENDING,
              priority=TaskPriority.LOW)

    params = TaskListingParams(status=TaskStatus.PENDING, search="report")
    titles = {task.title for task, _, _ in list_tasks(db_session, alice, params)[0]}
    assert titles == {"Write report", "Plan"}

    params = TaskListingParams(status=TaskStatus.PENDING, priority=TaskPriority.HIGH, search="REPORT")
    titles = {task.title for task, _, _ in list_tasks(db_session, alice, params)[0]}
    assert titles == {"Write report"}


def test_search_treats_wildcards_literally(db_session, alice):
    make_task(db_session, alice, "100% done")
    make_task(db_session, alice, "1000 items")

    rows, _ = list_tasks(db_session, alice, TaskListingParams(search="100%"))
    assert [task.title for task, _, _ in rows] == ["100% done"]


def test_priority_sorts_by_rank(db_session, alice):
    for priority in (TaskPriority.MEDIUM, TaskPriority.HIGH, TaskPriority.LOW):
        make_task(db_session, alice, priority.value, priority=priority)

    rows, _ = list_tasks(db_session, alice, TaskListingParams(sort_by="priority", sort_order="asc"))
    assert [task.priority for task, _, _ in rows] == [TaskPriority.LOW, TaskPriority.MEDIUM, TaskPriority.HIGH]

    rows, _ = list_tasks(db_session, alice, TaskListingParams(sort_by="priority", sort_order="desc"))
    assert [task.priority for task, _, _ in rows] == [TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW]


def test_status_sorts_by_workflow_order(db_session, alice):
    for status in (TaskStatus.COMPLETED, TaskStatus.PENDING, TaskStatus.IN_PROGRESS):
        make_task(db_session, alice, status.value, status=status)

    rows, _ = list_tasks(db_session, alice, TaskListingParams(sort_by="status", sort_order="asc"))
    assert [task.status for task, _, _ in rows] == [
        TaskStatus.PENDING,
        TaskStatus.IN_PROGRESS,
        TaskStatus.COMPLETED,
    ]


def test_created_at_defaults_to_newest_first(db_session, alice):
    first = make_task(db_session, alice, "first")
    second = make_task(db_session, alice, "second")

    rows, _ = list_tasks(db_session, alice, TaskListingParams())
    assert [task.id for task, _, _ in rows] == [second.id, first.id]


@pytest.mark.parametrize("limit", [1, 2, 3, 7])
def test_pagination_metadata(db_session, alice, limit):
    for index in range(7):
        make_task(db_session, alice, f"task {index}")

    seen = []
    page = 1
    while True:
        rows, pagination = list_tasks(db_session, alice, TaskListingParams(page=page, limit=limit))
        assert pagination.total == 7
        assert pagination.pages == math.ceil(7 / limit)
        assert len(rows) <= limit
        if not rows:
            break
        seen.extend(task.id for task, _, _ in rows)
        page += 1

    assert len(seen) == len(set(seen)) == 7
    assert page == pagination.pages + 1


def test_empty_listing_has_zero_pages(db_session, alice):
    rows, pagination = list_tasks(db_session, alice, TaskListingParams(page=2))
    assert rows == []
    assert (pagination.total, pagination.pages) == (0, 0)
