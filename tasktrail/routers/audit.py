from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tasktrail.database import get_db
from tasktrail.schemas.audit import AuditCreate, AuditUpdate, AuditOut
from tasktrail.services import audit as audit_service
from tasktrail.utils.auth import Principal, get_current_principal

router = APIRouter(prefix="/audit", tags=["audit"])


@router.post("", response_model=AuditOut, status_code=status.HTTP_201_CREATED)
def create_entry(
    entry: AuditCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Manual entry; the actor is always the authenticated caller."""
    return audit_service.record(db, principal.user_id, entry.action, entry.task_id, entry.details)


@router.get("", response_model=List[AuditOut])
def list_entries(
    task_id: Optional[int] = Query(None, alias="taskId"),
    action: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return audit_service.list_entries(db, task_id=task_id, action=action)


@router.get("/{entry_id}", response_model=AuditOut)
def get_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return audit_service.get_entry(db, entry_id)


@router.patch("/{entry_id}", response_model=AuditOut)
def update_entry(
    entry_id: int,
    patch: AuditUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return audit_service.update_entry(db, entry_id, patch.model_dump(exclude_unset=True))


@router.delete("/{entry_id}")
def delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    audit_service.delete_entry(db, entry_id)
    return {"detail": "deleted"}
