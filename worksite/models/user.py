"""
User model with role-based access control
"""
import uuid
from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from worksite.core.timeutils import utc_now
from worksite.models.database import Base


class UserRole(str, Enum):
    ADMIN = "admin"
    EP = "ep"  # equipment provider (issuing company)
    BP = "bp"  # business partner
    OWNER = "owner"
    WORKER = "worker"
    INSPECTOR = "inspector"


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), default=UserRole.WORKER, nullable=False)
    company_id = Column(UUID(as_uuid=True), nullable=True, index=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utc_now)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    audit_logs = relationship("AuditLog", back_populates="user")
    worker = relationship("Worker", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User {self.email}>"
