from datetime import datetime
from typing import Optional, Any, Dict

from pydantic import BaseModel, Field, field_validator

from tasktrail.schemas.task import CAMEL_CONFIG


class AuditCreate(BaseModel):
    model_config = CAMEL_CONFIG

    action: str = Field(min_length=1, max_length=50)
    task_id: int
    details: Optional[Dict[str, Any]] = None


class AuditUpdate(BaseModel):
    model_config = CAMEL_CONFIG

    action: Optional[str] = Field(None, min_length=1, max_length=50)
    details: Optional[Dict[str, Any]] = None

    @field_validator("action")
    @classmethod
    def action_not_null(cls, v):
        if v is None:
            raise ValueError("action cannot be null")
        return v


class AuditOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: int
    user_id: str
    action: str
    task_id: int
    details: Optional[Dict[str, Any]] = None
    timestamp: datetime
