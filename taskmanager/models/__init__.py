"""Task Manager Database Models"""
from taskmanager.models.user import User, UserRole
from taskmanager.models.task import Task, TaskPriority, TaskStatus
from taskmanager.models.attachment import TaskAttachment

__all__ = [
    "User",
    "UserRole",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "TaskAttachment",
]
