"""
Work zone model for GPS attendance areas
"""
import uuid
from enum import Enum
from sqlalchemy import Column, String, DateTime, Float, Boolean, Text, Enum as SQLEnum, JSON
from sqlalchemy.dialects.postgresql import UUID
from worksite.core.timeutils import utc_now
from worksite.models.database import Base
from worksite.core.zone_geometry import (
    CircleGeometry, GeoPoint, ZoneGeometry, polygon_from_coordinates
)


class ZoneType(str, Enum):
    CIRCLE = "circle"
    POLYGON = "polygon"


class WorkZone(Base):
    __tablename__ = "work_zones"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    zone_type = Column(SQLEnum(ZoneType), default=ZoneType.CIRCLE, nullable=False)

    # For circle type
    center_latitude = Column(Float, nullable=True)
    center_longitude = Column(Float, nullable=True)
    radius_meters = Column(Float, nullable=True)

    # For polygon type (JSON array of {"lat", "lng"} in drawing order)
    polygon_coordinates = Column(JSON, nullable=True)

    # Owning (issuing) company
    company_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    # Soft delete flag
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    @property
    def geometry(self) -> ZoneGeometry:
        if self.zone_type == ZoneType.POLYGON:
            return polygon_from_coordinates(self.polygon_coordinates or [])
        return CircleGeometry(
            center=GeoPoint(self.center_latitude, self.center_longitude),
            radius_meters=self.radius_meters,
        )

    def __repr__(self):
        return f"<WorkZone {self.name}>"
