import uuid

from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from historial.db.base import Base

ADMIN_ROLE = "Admin"
USER_ROLE = "User"


class Role(Base):
    __tablename__ = "roles"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(120), unique=True, nullable=False)
    description = Column(String(255))
    created_at = Column(DateTime, server_default=func.now())

    users = relationship("User", secondary="user_roles", back_populates="roles")
