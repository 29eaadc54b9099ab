"""Task lookups that combine existence checks with the access predicates.

Existence is always checked first. A task the requester cannot see is
reported as missing; a task they can see but not change is forbidden.
"""
from sqlalchemy.orm import Session, selectinload

from taskmanager.access import can_mutate, can_view
from taskmanager.errors import AuthorizationError, NotFoundError
from taskmanager.models import Task, User

TASK_NOT_FOUND = "Task not found"


def _task_query(db: Session):
    return db.query(Task).options(
        selectinload(Task.creator),
        selectinload(Task.assignee),
        selectinload(Task.attachments),
    )


def load_visible_task(db: Session, task_id: str, current_user: User) -> Task:
    task = _task_query(db).filter(Task.id == task_id).first()
    if task is None or not can_view(current_user, task):
        raise NotFoundError(TASK_NOT_FOUND)
    return task


def load_mutable_task(db: Session, task_id: str, current_user: User, lock: bool = False) -> Task:
    """Return the task if ``current_user`` may change it.

    With ``lock`` the row is selected ``FOR UPDATE`` so concurrent writers to
    the same task queue behind this transaction on back ends that support it.
    """
    query = db.query(Task).filter(Task.id == task_id)
    if lock:
        query = query.with_for_update()
    task = query.first()
    if task is None or not can_view(current_user, task):
        raise NotFoundError(TASK_NOT_FOUND)
    if not can_mutate(current_user, task):
        raise AuthorizationError("Access denied - you can only manage your own tasks")
    return task
