# historial/schemas/auth.py
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class LoginIn(BaseModel):
    username: str = Field(min_length=3,
                          max_length=50,
                          pattern=r"^[a-zA-Z0-9._@-]+$")
    password: str = Field(min_length=6, max_length=100)


class LoginOut(BaseModel):
    token: str
    username: str
    email: str
    full_name: str
    roles: List[str] = []
    expires_at: datetime
