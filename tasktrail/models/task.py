import enum
from datetime import datetime, UTC

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Enum
from tasktrail.database import Base


def utcnow():
    return datetime.now(UTC)


class TaskStatus(str, enum.Enum):
    OPEN = "OPEN"
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


TAG_SEPARATOR = ","


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False)
    status = Column(Enum(TaskStatus), default=TaskStatus.PENDING, nullable=False)
    delivery_date = Column(DateTime, nullable=False)
    comments = Column(Text, nullable=True)
    responsible = Column(String(100), nullable=True, index=True)
    # comma separated, order preserved
    tags_raw = Column("tags", Text, nullable=True)
    is_public = Column(Boolean, default=False, nullable=False)
    owner_id = Column(String(36), nullable=False, index=True)

    file_url = Column(String(1024), nullable=True)
    file_name = Column(String(255), nullable=True)
    file_key = Column(String(1024), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def tags(self):
        if not self.tags_raw:
            return []
        return self.tags_raw.split(TAG_SEPARATOR)

    @tags.setter
    def tags(self, values):
        self.tags_raw = TAG_SEPARATOR.join(values) if values else None
