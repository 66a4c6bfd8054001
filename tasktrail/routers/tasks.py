from datetime import datetime
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from tasktrail.database import get_db
from tasktrail.models.task import TaskStatus
from tasktrail.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskOut,
    TaskPage,
    FileMetadata,
    MessageOut,
    to_naive_utc,
)
from tasktrail.services import tasks as task_service
from tasktrail.services.storage import ObjectStorage, get_storage, get_storage_provider
from tasktrail.services.task_query import TaskListSpec
from tasktrail.utils.auth import Principal, get_current_principal

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return task_service.create(db, task, principal)


@router.get("", response_model=TaskPage)
def list_tasks(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    status_: Optional[TaskStatus] = Query(None, alias="status"),
    responsible: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    tags: Optional[str] = Query(None, description="Comma separated; only the first tag is matched"),
    order_by: Optional[str] = Query(None, alias="orderBy"),
    order_direction: Optional[str] = Query(None, alias="orderDirection"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Own tasks plus public tasks of everyone else, filtered, sorted and paginated."""
    spec = TaskListSpec.from_params(
        status=status_,
        responsible=responsible,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
        tags=tags,
        order_by=order_by,
        order_direction=order_direction,
        page=page,
        limit=limit,
    )
    return task_service.list_tasks(db, principal, spec)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return task_service.get(db, task_id, principal)


@router.put("/{task_id}", response_model=TaskOut)
@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    patch: TaskUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return task_service.update(db, task_id, patch, principal)


@router.delete("/{task_id}", response_model=MessageOut)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    storage_provider: Callable[[], ObjectStorage] = Depends(get_storage_provider),
):
    return task_service.remove(db, task_id, principal, storage_provider)


@router.post("/{task_id}/upload", response_model=FileMetadata)
def upload_file(
    task_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    storage: ObjectStorage = Depends(get_storage),
):
    # the multipart body is spooled to disk by starlette, the stream goes to S3 in parts
    return task_service.attach_file(
        db,
        task_id,
        file.file,
        file.filename or "",
        file.content_type or "",
        file.size,
        principal,
        storage,
    )
