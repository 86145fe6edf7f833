"""
Pydantic schemas for Work Zone API
"""
from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field, model_validator
from worksite.core.config import settings
from worksite.models.work_zone import ZoneType


class CoordinatePoint(BaseModel):
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)


class WorkZoneBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    zone_type: ZoneType = ZoneType.CIRCLE


class WorkZoneCreate(WorkZoneBase):
    # Required for admins; ep users always create zones for their own company
    company_id: Optional[UUID] = None

    # Circle type
    center_latitude: Optional[float] = Field(None, ge=-90, le=90, allow_inf_nan=False)
    center_longitude: Optional[float] = Field(None, ge=-180, le=180, allow_inf_nan=False)
    radius_meters: float = Field(
        default=settings.DEFAULT_ZONE_RADIUS_METERS,
        ge=settings.MIN_ZONE_RADIUS_METERS,
        le=settings.MAX_ZONE_RADIUS_METERS
    )

    # Polygon type
    polygon_coordinates: Optional[List[CoordinatePoint]] = None

    @model_validator(mode='after')
    def validate_zone_data(self):
        if self.zone_type == ZoneType.CIRCLE:
            if self.center_latitude is None or self.center_longitude is None:
                raise ValueError('Circle zone requires center_latitude and center_longitude')
        elif self.zone_type == ZoneType.POLYGON:
            if not self.polygon_coordinates or len(self.polygon_coordinates) < 3:
                raise ValueError('Polygon zone requires at least 3 coordinates')
        return self


class WorkZoneUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None
    zone_type: Optional[ZoneType] = None
    center_latitude: Optional[float] = Field(None, ge=-90, le=90, allow_inf_nan=False)
    center_longitude: Optional[float] = Field(None, ge=-180, le=180, allow_inf_nan=False)
    radius_meters: Optional[float] = Field(None, allow_inf_nan=False)
    polygon_coordinates: Optional[List[CoordinatePoint]] = None


class WorkZoneResponse(WorkZoneBase):
    id: UUID
    company_id: Optional[UUID] = None
    center_latitude: Optional[float] = None
    center_longitude: Optional[float] = None
    radius_meters: Optional[float] = None
    polygon_coordinates: Optional[List[CoordinatePoint]] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    created_by: Optional[UUID] = None

    class Config:
        from_attributes = True


class WorkZoneListResponse(BaseModel):
    work_zones: list[WorkZoneResponse]
    total: int


class ZoneCheckRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)


class ZoneCheckResponse(BaseModel):
    inside: bool
    work_zone_id: UUID
    work_zone_name: str
    distance_meters: float
