"""Task endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from taskmanager.database import get_db
from taskmanager.dependencies import get_current_user, get_storage
from taskmanager.errors import ValidationError
from taskmanager.models import Task, TaskPriority, TaskStatus, User
from taskmanager.query import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, MAX_PAGE, TaskListingParams, list_tasks
from taskmanager.schemas import (
    AttachmentResponse,
    Envelope,
    SortField,
    SortOrder,
    TaskCreate,
    TaskData,
    TaskDetail,
    TaskListData,
    TaskSummary,
    TaskUpdate,
)
from taskmanager.storage import AttachmentStorage
from taskmanager.utils.time_utils import utc_now
from taskmanager.api.v1.lookups import load_mutable_task, load_visible_task

logger = logging.getLogger(__name__)

router = APIRouter()


def _summary_fields(task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status,
        "priority": task.priority,
        "due_date": task.due_date,
        "created_by": task.created_by,
        "assigned_to": task.assigned_to,
        "created_at": task.created_at,
        "updated_at": task.updated_at,
    }


def serialize_summary(task: Task, created_by_email: Optional[str], assigned_to_email: Optional[str]) -> TaskSummary:
    return TaskSummary(
        **_summary_fields(task),
        created_by_email=created_by_email,
        assigned_to_email=assigned_to_email,
    )


def serialize_detail(task: Task) -> TaskDetail:
    return TaskDetail(
        **_summary_fields(task),
        created_by_email=task.creator.email if task.creator else None,
        assigned_to_email=task.assignee.email if task.assignee else None,
        attachments=[AttachmentResponse.model_validate(a) for a in task.attachments],
    )


def _ensure_assignee_exists(db: Session, assignee_id) -> str:
    assignee = db.get(User, str(assignee_id))
    if assignee is None:
        raise ValidationError("Assigned user not found")
    return assignee.id


@router.get("", response_model=Envelope[TaskListData])
def get_tasks(
    page: int = Query(DEFAULT_PAGE, ge=1, le=MAX_PAGE),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    search: Optional[str] = Query(None),
    sort_by: SortField = Query("created_at", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List visible tasks with filtering, sorting and pagination."""
    params = TaskListingParams(
        page=page,
        limit=limit,
        status=task_status,
        priority=priority,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    rows, pagination = list_tasks(db, current_user, params)
    tasks = [serialize_summary(task, creator_email, assignee_email) for task, creator_email, assignee_email in rows]
    return Envelope(data=TaskListData(tasks=tasks, pagination=pagination))


@router.get("/{task_id}", response_model=Envelope[TaskData])
def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    task = load_visible_task(db, task_id, current_user)
    return Envelope(data=TaskData(task=serialize_detail(task)))


@router.post("", response_model=Envelope[TaskData], status_code=status.HTTP_201_CREATED)
def create_task(
    task_in: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task owned by the current user."""
    assigned_to = None
    if task_in.assigned_to is not None:
        assigned_to = _ensure_assignee_exists(db, task_in.assigned_to)

    task = Task(
        title=task_in.title,
        description=task_in.description,
        status=task_in.status,
        priority=task_in.priority,
        due_date=task_in.due_date,
        assigned_to=assigned_to,
        created_by=current_user.id,
    )
    db.add(task)
    db.commit()

    logger.info("Task created: %s by user %s", task.id, current_user.id)
    task = load_visible_task(db, task.id, current_user)
    return Envelope(message="Task created successfully", data=TaskData(task=serialize_detail(task)))


@router.put("/{task_id}", response_model=Envelope[TaskData])
def update_task(
    task_id: str,
    task_update: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Apply a partial update; fields absent from the body are left unchanged."""
    update_data = task_update.model_dump(exclude_unset=True)
    if not update_data:
        raise ValidationError("No fields to update")

    task = load_mutable_task(db, task_id, current_user)

    if update_data.get("assigned_to") is not None:
        update_data["assigned_to"] = _ensure_assignee_exists(db, update_data["assigned_to"])

    for field, value in update_data.items():
        setattr(task, field, value)
    task.updated_at = utc_now()

    db.commit()
    logger.info("Task updated: %s by user %s (%s)", task.id, current_user.id, ", ".join(sorted(update_data)))

    db.expire_all()
    task = load_visible_task(db, task_id, current_user)
    return Envelope(message="Task updated successfully", data=TaskData(task=serialize_detail(task)))


@router.delete("/{task_id}", response_model=Envelope)
def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: AttachmentStorage = Depends(get_storage),
):
    """Delete a task, its attachment rows and (best effort) their stored files."""
    task = load_mutable_task(db, task_id, current_user)
    stored_paths = [attachment.file_path for attachment in task.attachments]

    db.delete(task)
    db.commit()
    storage.remove_all(stored_paths)

    logger.info("Task deleted: %s by user %s", task_id, current_user.id)
    return Envelope(message="Task deleted successfully")
