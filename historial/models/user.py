import uuid

from sqlalchemy import Column, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from historial.db.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), unique=True, nullable=False)
    email = Column(String(191), unique=True,
                   nullable=False)  # <= 191, no index=True
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=False, default="")
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False, default="")
    second_last_name = Column(String(100), nullable=True)

    is_active = Column(Boolean, default=True)

    roles = relationship("Role",
                         secondary="user_roles",
                         back_populates="users")

    @property
    def full_name(self) -> str:
        parts = [
            self.first_name, self.middle_name, self.last_name,
            self.second_last_name
        ]
        return " ".join(p.strip() for p in parts if p and p.strip())

    @property
    def role_names(self) -> list[str]:
        return [r.name for r in (self.roles or [])]

    def has_role(self, name: str) -> bool:
        return name in self.role_names


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }
    user_id = Column(String(36),
                     ForeignKey("users.id", ondelete="CASCADE"),
                     primary_key=True)
    role_id = Column(String(36),
                     ForeignKey("roles.id", ondelete="CASCADE"),
                     primary_key=True)
