"""
Deployment model: a worker (and optional guide worker) and equipment
assigned to an issuing company
"""
import uuid
from enum import Enum
from sqlalchemy import Column, String, DateTime, Date, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from worksite.core.timeutils import utc_now
from worksite.models.database import Base


class DeploymentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class Deployment(Base):
    __tablename__ = "deployments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Assignment
    worker_id = Column(UUID(as_uuid=True), ForeignKey("workers.id"), nullable=False)
    guide_worker_id = Column(UUID(as_uuid=True), ForeignKey("workers.id"), nullable=True)
    equipment_id = Column(String(100), nullable=True)

    # Companies
    issuing_company_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    partner_company_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    status = Column(SQLEnum(DeploymentStatus), default=DeploymentStatus.ACTIVE, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=utc_now)

    worker = relationship("Worker", foreign_keys=[worker_id])
    guide_worker = relationship("Worker", foreign_keys=[guide_worker_id])

    __table_args__ = (
        Index('idx_deployment_worker_status', 'worker_id', 'status'),
    )

    def __repr__(self):
        return f"<Deployment {self.id} ({self.status})>"
