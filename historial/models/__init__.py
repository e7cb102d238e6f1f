# historial/models/__init__.py
from .user import User, UserRole
from .role import Role
from .patient import Patient, Parent, MedicalHistory, Attachment
from .record_counter import RecordNumberCounter

__all__ = [
    "User",
    "UserRole",
    "Role",
    "Patient",
    "Parent",
    "MedicalHistory",
    "Attachment",
    "RecordNumberCounter",
]
