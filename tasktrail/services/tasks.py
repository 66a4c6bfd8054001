"""Task persistence plus the ownership/visibility policy.

A private task is visible to and mutable by its owner only. A public task is
visible to and mutable by any authenticated caller. Every successful mutation
is followed by exactly one audit entry.
"""
import logging
from typing import BinaryIO, Callable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from tasktrail.exceptions import NotFound, Forbidden, InternalFault
from tasktrail.models.audit import AuditAction
from tasktrail.models.task import Task
from tasktrail.schemas.task import TaskCreate, TaskUpdate
from tasktrail.services import audit
from tasktrail.services.storage import ObjectStorage
from tasktrail.services.task_query import TaskListSpec, build_query
from tasktrail.utils.auth import Principal

logger = logging.getLogger(__name__)


def _body(data) -> dict:
    """Request body as the client sent it, JSON-safe for the audit trail."""
    return data.model_dump(mode="json", by_alias=True, exclude_unset=True)


def can_access(task: Task, user_id: str) -> bool:
    # same rule for reading and mutating; public tasks are open to every caller
    return task.is_public or task.owner_id == user_id


def _require_modify(task: Task, principal: Principal, verb: str):
    if not can_access(task, principal.user_id):
        logger.warning("User %s refused to %s task %s", principal.user_id, verb, task.id)
        raise Forbidden(f"You can only {verb} your own private tasks")


def create(db: Session, data: TaskCreate, principal: Principal) -> Task:
    task = Task(
        title=data.title,
        description=data.description,
        status=data.status,
        delivery_date=data.delivery_date,
        comments=data.comments,
        responsible=data.responsible,
        is_public=data.is_public,
        owner_id=principal.user_id,
    )
    task.tags = data.tags
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("Task %s created by user %s", task.id, principal.user_id)

    audit.record(db, principal.user_id, AuditAction.CREATE_TASK, task.id, _body(data))
    return task


def list_tasks(db: Session, principal: Principal, spec: TaskListSpec) -> dict:
    query = build_query(db.query(Task), principal.user_id, spec)
    total = query.count()
    page = spec.pagination
    items = spec.sort.apply(query).offset(page.offset).limit(page.limit).all()
    return {
        "items": items,
        "total": total,
        "page": page.page,
        "limit": page.limit,
        "total_pages": page.total_pages(total),
        "filters": spec.describe_filters(),
        "sorting": spec.sort.describe(),
    }


def get(db: Session, task_id: int, principal: Optional[Principal] = None) -> Task:
    task = db.get(Task, task_id)
    if task is None:
        raise NotFound(f"Task #{task_id} not found")
    if principal is not None and not can_access(task, principal.user_id):
        raise Forbidden("You don't have permission to view this task")
    return task


def update(db: Session, task_id: int, data: TaskUpdate, principal: Principal) -> Task:
    task = get(db, task_id)
    _require_modify(task, principal, "update")

    # no transition rules: any status may follow any other
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(task, field, value)
    db.commit()
    logger.info("Task %s updated by user %s", task_id, principal.user_id)

    audit.record(db, principal.user_id, AuditAction.UPDATE_TASK, task_id, _body(data))
    db.refresh(task)
    return task


def remove(
    db: Session,
    task_id: int,
    principal: Principal,
    storage_provider: Callable[[], ObjectStorage],
) -> dict:
    task = get(db, task_id)
    _require_modify(task, principal, "delete")

    title = task.title
    # tasks without an attachment never need the store
    if task.file_key:
        storage_provider().delete(task.file_key)
    db.delete(task)
    db.commit()
    logger.info("Task %s deleted by user %s", task_id, principal.user_id)

    audit.record(db, principal.user_id, AuditAction.DELETE_TASK, task_id, {"title": title})
    return {"message": "Task deleted successfully"}


def attach_file(
    db: Session,
    task_id: int,
    fileobj: BinaryIO,
    filename: str,
    mimetype: str,
    size: Optional[int],
    principal: Principal,
    storage: ObjectStorage,
) -> dict:
    task = get(db, task_id)
    _require_modify(task, principal, "attach files to")

    try:
        stored = storage.upload(fileobj, size, task_id, filename, mimetype)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception(
            "Upload for task %s by user %s failed: %s", task_id, principal.user_id, exc
        )
        raise InternalFault("Failed to upload file")

    # only reference the object once the store has confirmed it
    task.file_url = stored.url
    task.file_name = stored.filename
    task.file_key = stored.key
    db.commit()
    logger.info("File %s attached to task %s by user %s", stored.key, task_id, principal.user_id)

    audit.record(
        db,
        principal.user_id,
        AuditAction.UPLOAD_FILE,
        task_id,
        {"filename": stored.filename, "size": stored.size, "url": stored.url},
    )
    return {
        "url": stored.url,
        "filename": stored.filename,
        "size": stored.size,
        "mimetype": stored.mimetype,
    }
