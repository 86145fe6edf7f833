"""
Check-in model: one attendance record per worker per calendar day
"""
import uuid
from enum import Enum
from sqlalchemy import (
    Column, String, DateTime, Date, Float, Boolean, Text, ForeignKey,
    UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from worksite.core.timeutils import utc_now
from worksite.models.database import Base


class AuthMethod(str, Enum):
    PIN = "pin"
    PASSWORD = "password"
    BIOMETRIC = "biometric"


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    worker_id = Column(UUID(as_uuid=True), ForeignKey("workers.id"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Snapshot references, never updated after creation
    deployment_id = Column(UUID(as_uuid=True), ForeignKey("deployments.id", ondelete="SET NULL"), nullable=True)
    work_zone_id = Column(UUID(as_uuid=True), ForeignKey("work_zones.id", ondelete="SET NULL"), nullable=True)

    check_in_time = Column(DateTime, default=utc_now, nullable=False, index=True)
    # Local calendar day of check_in_time
    check_in_date = Column(Date, nullable=False)

    # Position and zone evaluation
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    distance_from_zone = Column(Float, nullable=True)  # meters
    is_within_zone = Column(Boolean, default=False, nullable=False)

    # Authentication
    auth_method = Column(SQLEnum(AuthMethod), default=AuthMethod.PIN, nullable=False)
    biometric_credential_id = Column(String(255), nullable=True)

    device_info = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    worker = relationship("Worker")
    work_zone = relationship("WorkZone")
    deployment = relationship("Deployment")

    __table_args__ = (
        UniqueConstraint('worker_id', 'check_in_date', name='uq_check_in_worker_day'),
    )

    def __repr__(self):
        return f"<CheckIn {self.worker_id} on {self.check_in_date}>"
