# historial/api/routes_auth.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from historial.api.deps import get_db
from historial.core.errors import Unauthorized
from historial.schemas.auth import LoginIn, LoginOut
from historial.schemas.user import MessageOut, RegisterIn
from historial.services import users as user_service

router = APIRouter()


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    result = user_service.login(db, payload)
    if result is None:
        raise Unauthorized("Invalid username or password")
    return result


@router.post("/create-admin", response_model=MessageOut)
def create_admin(payload: RegisterIn, db: Session = Depends(get_db)):
    """Initial setup: create an account with the Admin role."""
    user_service.create_admin_user(db, payload)
    return MessageOut(message="Admin user created successfully")
