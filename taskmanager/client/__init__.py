"""Python client and cached client-side state for the task management API."""
from taskmanager.client.api import ApiClient, ApiError
from taskmanager.client.session import AuthSession, FileTokenStore, MemoryTokenStore
from taskmanager.client.store import PageState, TaskFilters, TaskStore

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthSession",
    "FileTokenStore",
    "MemoryTokenStore",
    "PageState",
    "TaskFilters",
    "TaskStore",
]
