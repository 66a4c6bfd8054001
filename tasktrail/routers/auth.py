from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tasktrail.database import get_db
from tasktrail.schemas.user import UserCreate, UserLogin, TokenOut
from tasktrail.services import credentials

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate, db: Session = Depends(get_db)):
    return credentials.register(db, user.email, user.password, user.name)


@router.post("/login", response_model=TokenOut)
def login(user: UserLogin, db: Session = Depends(get_db)):
    return credentials.login(db, user.email, user.password)
