"""Cached task state bound to the API: listing, current task, filters, paging."""
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from taskmanager.client.api import ApiClient, ApiError, FileSpec

logger = logging.getLogger(__name__)


@dataclass
class TaskFilters:
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def as_params(self) -> Dict[str, str]:
        params = {
            "status": self.status,
            "priority": self.priority,
            "search": self.search,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }
        return {key: value for key, value in params.items() if value}


@dataclass
class PageState:
    page: int = 1
    limit: int = 10
    total: int = 0
    pages: int = 0


@dataclass
class TaskStore:
    api: ApiClient
    tasks: List[Dict[str, Any]] = field(default_factory=list)
    current_task: Optional[Dict[str, Any]] = None
    filters: TaskFilters = field(default_factory=TaskFilters)
    pagination: PageState = field(default_factory=PageState)
    error: Optional[str] = None

    def _call(self, fn, *args, **kwargs):
        self.error = None
        try:
            return fn(*args, **kwargs)
        except ApiError as exc:
            self.error = exc.message
            raise

    # Filters and paging

    def set_filters(self, **changes) -> None:
        """Merge filter changes; any change sends the listing back to page 1."""
        merged = asdict(self.filters)
        unknown = set(changes) - set(merged)
        if unknown:
            raise TypeError(f"Unknown filter(s): {', '.join(sorted(unknown))}")
        merged.update(changes)
        self.filters = TaskFilters(**merged)
        self.pagination.page = 1

    def clear_filters(self) -> None:
        self.filters = TaskFilters()
        self.pagination.page = 1

    def set_page(self, page: int) -> None:
        self.pagination.page = page

    def set_limit(self, limit: int) -> None:
        self.pagination.limit = limit
        self.pagination.page = 1

    # Queries

    def fetch_tasks(self) -> List[Dict[str, Any]]:
        params = dict(self.filters.as_params(), page=self.pagination.page, limit=self.pagination.limit)
        data = self._call(self.api.list_tasks, params)
        self.tasks = data["tasks"]
        self.pagination = PageState(**data["pagination"])
        return self.tasks

    def fetch_task(self, task_id: str) -> Dict[str, Any]:
        self.current_task = self._call(self.api.get_task, task_id)
        return self.current_task

    def clear_current_task(self) -> None:
        self.current_task = None

    # Mutations

    def create_task(self, task: Dict[str, Any]) -> Dict[str, Any]:
        created = self._call(self.api.create_task, task)
        self.tasks.insert(0, created)
        return created

    def update_task(self, task_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        updated = self._call(self.api.update_task, task_id, changes)
        self.tasks = [updated if task["id"] == task_id else task for task in self.tasks]
        if self.current_task and self.current_task["id"] == task_id:
            self.current_task = updated
        return updated

    def delete_task(self, task_id: str) -> None:
        self._call(self.api.delete_task, task_id)
        self.tasks = [task for task in self.tasks if task["id"] != task_id]
        if self.current_task and self.current_task["id"] == task_id:
            self.current_task = None

    def upload_attachments(self, task_id: str, files: Iterable[FileSpec]) -> List[Dict[str, Any]]:
        attachments = self._call(self.api.upload_attachments, task_id, list(files))
        if self.current_task and self.current_task["id"] == task_id:
            self.current_task["attachments"] = list(self.current_task.get("attachments") or []) + attachments
        logger.debug("Uploaded %d attachment(s) to task %s", len(attachments), task_id)
        return attachments
