"""
Location fix model for worker tracking
"""
from sqlalchemy import Column, Integer, String, DateTime, Float, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from worksite.core.timeutils import utc_now
from worksite.models.database import Base


class LocationFix(Base):
    __tablename__ = "location_logs"

    # Autoincrement id doubles as ingestion order for timestamp ties
    id = Column(Integer, primary_key=True, autoincrement=True)
    worker_id = Column(UUID(as_uuid=True), ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    equipment_id = Column(String(100), nullable=True)

    # Location data
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)  # meters

    # Timestamps
    recorded_at = Column(DateTime, default=utc_now, nullable=False)
    received_at = Column(DateTime, default=utc_now)

    worker = relationship("Worker")

    # Indexes for efficient querying
    __table_args__ = (
        Index('idx_location_worker_time', 'worker_id', 'recorded_at'),
        Index('idx_location_equipment_time', 'equipment_id', 'recorded_at'),
    )

    def __repr__(self):
        return f"<LocationFix {self.worker_id} at {self.recorded_at}>"
