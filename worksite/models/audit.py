"""
Audit log model for tracking access and changes
"""
import uuid
from enum import Enum
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Enum as SQLEnum, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from worksite.core.timeutils import utc_now
from worksite.models.database import Base


class AuditAction(str, Enum):
    # Authentication
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"

    # Work zones
    ZONE_CREATE = "zone_create"
    ZONE_UPDATE = "zone_update"
    ZONE_DEACTIVATE = "zone_deactivate"

    # Attendance
    CHECK_IN = "check_in"
    ATTENDANCE_STATS_VIEW = "attendance_stats_view"

    # Location tracking
    LOCATION_HISTORY_VIEW = "location_history_view"
    TRAJECTORY_VIEW = "trajectory_view"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Who performed the action
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    user_email = Column(String(255), nullable=True)  # Denormalized for historical record
    user_role = Column(String(50), nullable=True)

    # What action was performed
    action = Column(SQLEnum(AuditAction), nullable=False)

    # Target of the action
    target_type = Column(String(50), nullable=True)  # work_zone, check_in, worker
    target_id = Column(UUID(as_uuid=True), nullable=True)
    target_identifier = Column(String(255), nullable=True)

    # Details
    description = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)

    # Context
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=utc_now, index=True)

    user = relationship("User", back_populates="audit_logs")

    def __repr__(self):
        return f"<AuditLog {self.action} by {self.user_email} at {self.created_at}>"
