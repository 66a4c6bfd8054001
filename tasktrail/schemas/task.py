from datetime import datetime, UTC
from typing import Annotated, Optional, List

from pydantic import BaseModel, Field, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from tasktrail.models.task import TaskStatus, TAG_SEPARATOR

CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "from_attributes": True,
}

# stripped first, so padding never counts towards the length limits
Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
Description = Annotated[str, StringConstraints(strip_whitespace=True, min_length=10, max_length=2000)]


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store every timestamp as naive UTC so SQLite and Postgres compare alike."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _clean_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    seen = []
    for raw in values:
        tag = raw.strip()
        if not tag:
            raise ValueError("tags cannot be empty")
        if TAG_SEPARATOR in tag:
            raise ValueError("tags cannot contain commas")
        if tag not in seen:
            seen.append(tag)
    return seen


class TaskCreate(BaseModel):
    model_config = CAMEL_CONFIG

    title: Title
    description: Description
    delivery_date: datetime
    status: TaskStatus = TaskStatus.PENDING
    comments: Optional[str] = Field(None, max_length=1000)
    responsible: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    is_public: bool = False

    @field_validator("delivery_date")
    @classmethod
    def delivery_date_utc(cls, v):
        return to_naive_utc(v)

    @field_validator("tags")
    @classmethod
    def tags_are_clean(cls, v):
        return _clean_tags(v)


class TaskUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    model_config = CAMEL_CONFIG

    title: Optional[Title] = None
    description: Optional[Description] = None
    delivery_date: Optional[datetime] = None
    status: Optional[TaskStatus] = None
    comments: Optional[str] = Field(None, max_length=1000)
    responsible: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None

    @field_validator("title", "description", "delivery_date", "status", "is_public")
    @classmethod
    def required_columns_not_null(cls, v):
        # these columns are NOT NULL; an explicit null in the body is rejected
        if v is None:
            raise ValueError("cannot be null")
        return v

    @field_validator("delivery_date")
    @classmethod
    def delivery_date_utc(cls, v):
        return to_naive_utc(v)

    @field_validator("tags")
    @classmethod
    def tags_are_clean(cls, v):
        return _clean_tags(v)


class TaskOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: int
    title: str
    description: str
    status: TaskStatus
    delivery_date: datetime
    comments: Optional[str] = None
    responsible: Optional[str] = None
    tags: List[str] = []
    is_public: bool
    owner_id: str
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class TaskPage(BaseModel):
    model_config = CAMEL_CONFIG

    items: List[TaskOut]
    total: int
    page: int
    limit: int
    total_pages: int
    filters: dict = {}
    sorting: dict = {}


class FileMetadata(BaseModel):
    url: str
    filename: str
    size: int
    mimetype: str


class MessageOut(BaseModel):
    message: str
