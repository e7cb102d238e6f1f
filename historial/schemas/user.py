# historial/schemas/user.py
from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List

from historial.core.security import password_problems


class UserNames(BaseModel):
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    second_last_name: Optional[str] = None


class RegisterIn(UserNames):
    username: str = Field(min_length=3,
                          max_length=50,
                          pattern=r"^[a-zA-Z0-9._@-]+$")
    email: EmailStr
    password: str
    confirm_password: str

    @model_validator(mode="after")
    def _check_password(self):
        problems = password_problems(self.password)
        if problems:
            raise ValueError("; ".join(problems))
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserUpdate(UserNames):
    email: EmailStr
    # None/empty => keep existing password
    password: Optional[str] = None

    @model_validator(mode="after")
    def _check_password(self):
        if self.password:
            problems = password_problems(self.password)
            if problems:
                raise ValueError("; ".join(problems))
        return self


class UserOut(UserNames):
    id: str
    username: str
    email: str
    full_name: str
    roles: List[str] = []
    is_active: bool = True


class MessageOut(BaseModel):
    message: str
