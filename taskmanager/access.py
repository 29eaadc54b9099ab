"""Row-level access rules for tasks.

Two predicates decide what a requester may do with a task:

* ``can_view``: administrators see everything; everyone else sees the tasks
  they created or that are assigned to them.
* ``can_mutate``: administrators and the task's creator may update or delete.
  Being the assignee grants visibility only.

``visibility_clause`` is the query-side dual of ``can_view`` and is used to
restrict listings to visible rows.
"""
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from taskmanager.models import Task, UserRole


def is_admin(requester: Any) -> bool:
    return getattr(requester, "role", None) in (UserRole.ADMIN, UserRole.ADMIN.value)


def can_view(requester: Any, task: Any) -> bool:
    if is_admin(requester):
        return True
    if requester.id is None:
        return False
    return requester.id in (task.created_by, task.assigned_to)


def can_mutate(requester: Any, task: Any) -> bool:
    if is_admin(requester):
        return True
    return requester.id == task.created_by


def visibility_clause(requester: Any) -> Optional[ColumnElement]:
    """Return the filter restricting tasks to those ``requester`` may see, or ``None``."""
    if is_admin(requester):
        return None
    return or_(Task.created_by == requester.id, Task.assigned_to == requester.id)
