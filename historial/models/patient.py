# FILE: historial/models/patient.py
import uuid

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    DateTime,
    ForeignKey,
    func,
)
from sqlalchemy.orm import relationship

from historial.db.base import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Parent(Base):
    __tablename__ = "parents"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    middle_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=False)


class Patient(Base):
    __tablename__ = "patients"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(String(36), primary_key=True, default=new_id)
    # assigned once by the record-number generator
    record_number = Column(String(32), unique=True, index=True, nullable=False)

    # personal information
    name = Column(String(191), nullable=False)
    diagnosis = Column(Text, nullable=True)
    birth_date = Column(Date, nullable=True)
    age = Column(String(32), nullable=True)
    sex = Column(String(16), nullable=True)
    referred_by = Column(String(191), nullable=True)
    consultation_date = Column(Date, nullable=True)
    medical_insurance = Column(String(191), nullable=True)

    # pregnancy / birth
    gestation = Column(String(120), nullable=True)
    delivery = Column(String(120), nullable=True)
    birth_weight = Column(String(32), nullable=True)

    mother_id = Column(Integer, ForeignKey("parents.id"), nullable=True)
    father_id = Column(Integer, ForeignKey("parents.id"), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(
        DateTime,
        onupdate=func.now(),
        server_default=func.now(),
    )

    # relationships
    mother = relationship(
        "Parent",
        foreign_keys=[mother_id],
        cascade="all, delete-orphan",
        single_parent=True,
    )
    father = relationship(
        "Parent",
        foreign_keys=[father_id],
        cascade="all, delete-orphan",
        single_parent=True,
    )
    history = relationship(
        "MedicalHistory",
        cascade="all, delete-orphan",
        back_populates="patient",
        order_by="MedicalHistory.logged_at",
    )
    attachments = relationship(
        "Attachment",
        cascade="all, delete-orphan",
        back_populates="patient",
        order_by="Attachment.upload_date.desc()",
    )


class MedicalHistory(Base):
    __tablename__ = "medical_histories"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(String(36), primary_key=True, default=new_id)
    patient_id = Column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    note = Column(Text, nullable=False)
    logged_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    patient = relationship("Patient", back_populates="history")


class Attachment(Base):
    __tablename__ = "attachments"
    __table_args__ = {
        "mysql_engine": "InnoDB",
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id = Column(String(36), primary_key=True, default=new_id)
    patient_id = Column(
        String(36),
        ForeignKey("patients.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    # absolute path on disk; never serialized to clients
    path = Column(String(512), nullable=False)
    upload_date = Column(DateTime, nullable=False)
    size = Column(String(32), nullable=False)

    patient = relationship("Patient", back_populates="attachments")
