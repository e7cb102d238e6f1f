# historial/api/routes_users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from historial.api.deps import get_db, current_user, require_admin
from historial.models.user import User
from historial.schemas.user import MessageOut, RegisterIn, UserOut, UserUpdate
from historial.services import users as user_service

router = APIRouter()


@router.get("/me", response_model=UserOut)
def read_me(me: User = Depends(current_user)):
    return user_service.to_out(me)


@router.get("/", response_model=list[UserOut])
def list_users(
        db: Session = Depends(get_db),
        me: User = Depends(require_admin),
):
    return [user_service.to_out(u) for u in user_service.list_users(db)]


@router.post("/", response_model=MessageOut)
def create_user(
        payload: RegisterIn,
        db: Session = Depends(get_db),
        me: User = Depends(require_admin),
):
    user_service.create_user(db, payload, me)
    return MessageOut(message="User created successfully")


@router.get("/{user_id}", response_model=UserOut)
def get_user(
        user_id: str,
        db: Session = Depends(get_db),
        me: User = Depends(require_admin),
):
    u = user_service.get_user(db, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return user_service.to_out(u)


@router.put("/{user_id}", response_model=MessageOut)
def update_user(
        user_id: str,
        payload: UserUpdate,
        db: Session = Depends(get_db),
        me: User = Depends(require_admin),
):
    user_service.update_user(db, user_id, payload)
    return MessageOut(message="User updated successfully")


@router.delete("/{user_id}", response_model=MessageOut)
def delete_user(
        user_id: str,
        db: Session = Depends(get_db),
        me: User = Depends(require_admin),
):
    user_service.delete_user(db, user_id)
    return MessageOut(message="User deleted successfully")
