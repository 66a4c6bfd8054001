from sqlalchemy import Column, Integer, String, DateTime, JSON
from tasktrail.database import Base
from tasktrail.models.task import utcnow


class AuditAction:
    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    UPLOAD_FILE = "UPLOAD_FILE"


class AuditLog(Base):
    """One row per mutating action. No foreign key to tasks: entries outlive deleted tasks."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    task_id = Column(Integer, nullable=False, index=True)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
