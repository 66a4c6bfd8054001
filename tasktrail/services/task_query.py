"""Typed description of a task listing: visibility, filters, sort and page."""
from dataclasses import dataclass, field
from datetime import datetime
from math import ceil
from typing import Optional, List, Union

from sqlalchemy import case, or_, literal
from sqlalchemy.orm import Query

from tasktrail.models.task import Task, TaskStatus, TAG_SEPARATOR

SORTABLE_FIELDS = {
    "createdAt": Task.created_at,
    "deliveryDate": Task.delivery_date,
    # lifecycle order (OPEN, PENDING, IN_PROGRESS, DONE) rather than alphabetical
    "status": case(*[(Task.status == s, rank) for rank, s in enumerate(TaskStatus)]),
    "title": Task.title,
    "updatedAt": Task.updated_at,
}
DEFAULT_SORT_FIELD = "createdAt"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class StatusFilter:
    status: TaskStatus

    def clause(self):
        return Task.status == self.status

    def describe(self):
        return {"status": self.status.value}


@dataclass(frozen=True)
class ResponsibleFilter:
    responsible: str

    def clause(self):
        return Task.responsible == self.responsible

    def describe(self):
        return {"responsible": self.responsible}


@dataclass(frozen=True)
class DeliveryWindowFilter:
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def clause(self):
        if self.start is not None and self.end is not None:
            return Task.delivery_date.between(self.start, self.end)
        if self.start is not None:
            return Task.delivery_date >= self.start
        return Task.delivery_date <= self.end

    def describe(self):
        return {
            "startDate": self.start.isoformat() if self.start else None,
            "endDate": self.end.isoformat() if self.end else None,
        }


@dataclass(frozen=True)
class TagFilter:
    """Matches tasks carrying the first requested tag; the rest are ignored."""

    tags: List[str]

    @property
    def tag(self) -> str:
        return self.tags[0]

    def clause(self):
        # ",a,b," LIKE "%,a,%" is an exact element match on the stored list
        sep = literal(TAG_SEPARATOR)
        wrapped = sep + Task.tags_raw + sep
        pattern = f"%{TAG_SEPARATOR}{_escape_like(self.tag)}{TAG_SEPARATOR}%"
        return wrapped.like(pattern, escape="\\")

    def describe(self):
        return {"tags": TAG_SEPARATOR.join(self.tags)}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


TaskFilter = Union[StatusFilter, ResponsibleFilter, DeliveryWindowFilter, TagFilter]


@dataclass(frozen=True)
class TaskSort:
    field: str = DEFAULT_SORT_FIELD
    descending: bool = True

    @classmethod
    def parse(cls, order_by: Optional[str], direction: Optional[str]) -> "TaskSort":
        # unknown fields fall back to createdAt rather than failing the request
        field_name = order_by if order_by in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
        descending = (direction or "DESC").upper() != "ASC"
        return cls(field=field_name, descending=descending)

    def apply(self, query: Query) -> Query:
        column = SORTABLE_FIELDS[self.field]
        if self.descending:
            return query.order_by(column.desc(), Task.id.desc())
        return query.order_by(column.asc(), Task.id.asc())

    def describe(self):
        return {"orderBy": self.field, "orderDirection": "DESC" if self.descending else "ASC"}


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def normalize(cls, page: Optional[int], limit: Optional[int]) -> "Pagination":
        page = page if page and page >= 1 else DEFAULT_PAGE
        if not limit or limit < 1:
            limit = DEFAULT_LIMIT
        return cls(page=page, limit=min(limit, MAX_LIMIT))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return ceil(total / self.limit)


@dataclass(frozen=True)
class TaskListSpec:
    filters: List[TaskFilter] = field(default_factory=list)
    sort: TaskSort = field(default_factory=TaskSort)
    pagination: Pagination = field(default_factory=Pagination)

    @classmethod
    def from_params(
        cls,
        status: Optional[TaskStatus] = None,
        responsible: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        tags: Optional[str] = None,
        order_by: Optional[str] = None,
        order_direction: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> "TaskListSpec":
        filters: List[TaskFilter] = []
        if status:
            filters.append(StatusFilter(status))
        if responsible:
            filters.append(ResponsibleFilter(responsible))
        if start_date or end_date:
            filters.append(DeliveryWindowFilter(start_date, end_date))
        if tags:
            tag_list = [t.strip() for t in tags.split(TAG_SEPARATOR) if t.strip()]
            if tag_list:
                filters.append(TagFilter(tag_list))
        return cls(
            filters=filters,
            sort=TaskSort.parse(order_by, order_direction),
            pagination=Pagination.normalize(page, limit),
        )

    def describe_filters(self) -> dict:
        described = {}
        for f in self.filters:
            described.update(f.describe())
        return described


def visible_to(user_id: str):
    return or_(Task.owner_id == user_id, Task.is_public.is_(True))


def build_query(query: Query, user_id: str, spec: TaskListSpec) -> Query:
    """Visibility first, then every filter ANDed on. Sorting/paging are applied by the caller."""
    query = query.filter(visible_to(user_id))
    for f in spec.filters:
        query = query.filter(f.clause())
    return query
