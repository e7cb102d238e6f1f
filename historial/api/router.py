# historial/api/router.py
from fastapi import APIRouter
from historial.api import (
    routes_auth,
    routes_users,
    routes_patients,
    routes_attachments,
)

api_router = APIRouter()

# ---- Core
api_router.include_router(routes_auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(routes_users.router, prefix="/users", tags=["users"])

# ---- Patients
api_router.include_router(routes_patients.router, tags=["patients"])
api_router.include_router(routes_attachments.router, tags=["attachments"])
