"""Schemas for tasks"""
from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from taskmanager.models.task import TaskPriority, TaskStatus
from taskmanager.schemas.attachment import AttachmentResponse
from taskmanager.schemas.common import Pagination

SortField = Literal["created_at", "due_date", "priority", "status"]
SortOrder = Literal["asc", "desc"]


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None
    assigned_to: Optional[UUID] = None


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    assigned_to: Optional[UUID] = None

    @field_validator("title", "status", "priority")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value


class TaskSummary(BaseModel):
    id: str
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[date]
    created_by: str
    assigned_to: Optional[str]
    created_by_email: Optional[str] = None
    assigned_to_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaskDetail(TaskSummary):
    attachments: List[AttachmentResponse] = Field(default_factory=list)


class TaskData(BaseModel):
    task: TaskDetail


class TaskListData(BaseModel):
    tasks: List[TaskSummary]
    pagination: Pagination
