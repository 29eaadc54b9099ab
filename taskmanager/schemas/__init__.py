"""
Pydantic schemas for request/response validation
"""
from taskmanager.schemas.common import Envelope, Pagination
from taskmanager.schemas.user import (
    AuthData,
    UserCreate,
    UserData,
    UserListData,
    UserLogin,
    UserRegister,
    UserResponse,
    UserUpdate,
)
from taskmanager.schemas.task import (
    SortField,
    SortOrder,
    TaskCreate,
    TaskData,
    TaskDetail,
    TaskListData,
    TaskSummary,
    TaskUpdate,
)
from taskmanager.schemas.attachment import AttachmentListData, AttachmentResponse

__all__ = [
    "Envelope",
    "Pagination",
    "AuthData",
    "UserCreate",
    "UserData",
    "UserListData",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "UserUpdate",
    "SortField",
    "SortOrder",
    "TaskCreate",
    "TaskData",
    "TaskDetail",
    "TaskListData",
    "TaskSummary",
    "TaskUpdate",
    "AttachmentListData",
    "AttachmentResponse",
]
