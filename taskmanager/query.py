"""Filtered, sorted and paginated task listings.

A listing is assembled from independent predicates collected in a
:class:`PredicateSet`. Each predicate is a SQLAlchemy expression carrying its
own bound parameter, so user input never reaches the SQL text. The same set is
used for the ``COUNT(*)`` that feeds the pagination metadata and for the page
query itself.
"""
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.orm import Session, aliased
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from taskmanager.access import visibility_clause
from taskmanager.errors import ValidationError
from taskmanager.models import Task, TaskPriority, TaskStatus, User
from taskmanager.schemas.common import Pagination

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps the row offset inside a 32-bit database integer.
MAX_PAGE = 2**31 // MAX_LIMIT

SORT_FIELDS = ("created_at", "due_date", "priority", "status")
SORT_ORDERS = ("asc", "desc")

PRIORITY_RANK = case(
    {TaskPriority.LOW: 1, TaskPriority.MEDIUM: 2, TaskPriority.HIGH: 3},
    value=Task.priority,
)
STATUS_RANK = case(
    {TaskStatus.PENDING: 1, TaskStatus.IN_PROGRESS: 2, TaskStatus.COMPLETED: 3},
    value=Task.status,
)

SORT_COLUMNS = {
    "created_at": Task.created_at,
    "due_date": Task.due_date,
    "priority": PRIORITY_RANK,
    "status": STATUS_RANK,
}


class PredicateSet:
    """Conjunction of independent filter predicates."""

    def __init__(self) -> None:
        self._predicates: List[ColumnElement] = []

    def add(self, predicate: Optional[ColumnElement]) -> "PredicateSet":
        if predicate is not None:
            self._predicates.append(predicate)
        return self

    def __len__(self) -> int:
        return len(self._predicates)

    def apply(self, statement: Select) -> Select:
        if not self._predicates:
            return statement
        return statement.where(and_(*self._predicates))


@dataclass
class TaskListingParams:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    search: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        if not 1 <= self.page <= MAX_PAGE:
            raise ValidationError(f"page must be between 1 and {MAX_PAGE}")
        if not 1 <= self.limit <= MAX_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")
        if self.sort_by not in SORT_FIELDS:
            raise ValidationError(f"sortBy must be one of: {', '.join(SORT_FIELDS)}")
        if self.sort_order not in SORT_ORDERS:
            raise ValidationError("sortOrder must be one of: asc, desc")
        if self.search is not None:
            self.search = self.search.strip() or None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class TaskListingQuery:
    """Builds the count and page statements for one listing request."""

    def __init__(self, requester: Any, params: TaskListingParams):
        self.requester = requester
        self.params = params
        self.creator = aliased(User, name="creator")
        self.assignee = aliased(User, name="assignee")

    def predicates(self) -> PredicateSet:
        params = self.params
        predicates = PredicateSet().add(visibility_clause(self.requester))
        if params.status is not None:
            predicates.add(Task.status == params.status)
        if params.priority is not None:
            predicates.add(Task.priority == params.priority)
        if params.search:
            predicates.add(
                or_(
                    Task.title.icontains(params.search, autoescape=True),
                    Task.description.icontains(params.search, autoescape=True),
                )
            )
        return predicates

    def count_statement(self) -> Select:
        return self.predicates().apply(select(func.count()).select_from(Task))

    def page_statement(self) -> Select:
        params = self.params
        sort_column = SORT_COLUMNS[params.sort_by]
        ordering = sort_column.asc() if params.sort_order == "asc" else sort_column.desc()

        statement = (
            select(
                Task,
                self.creator.email.label("created_by_email"),
                self.assignee.email.label("assigned_to_email"),
            )
            .outerjoin(self.creator, Task.created_by == self.creator.id)
            .outerjoin(self.assignee, Task.assigned_to == self.assignee.id)
        )
        return (
            self.predicates()
            .apply(statement)
            .order_by(ordering, Task.id.asc())
            .limit(params.limit)
            .offset(params.offset)
        )

    def execute(self, db: Session) -> Tuple[List[Tuple[Task, Optional[str], Optional[str]]], Pagination]:
        total = db.execute(self.count_statement()).scalar_one()
        rows = [tuple(row) for row in db.execute(self.page_statement()).all()]
        return rows, Pagination.build(self.params.page, self.params.limit, total)


def list_tasks(db: Session, requester: Any, params: TaskListingParams):
    """Return one page of tasks visible to ``requester`` plus pagination metadata."""
    return TaskListingQuery(requester, params).execute(db)
