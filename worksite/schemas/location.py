"""
Pydantic schemas for Location API
"""
from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field


class LocationFixCreate(BaseModel):
    worker_id: UUID
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    accuracy: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    equipment_id: Optional[str] = Field(None, max_length=100)
    recorded_at: Optional[datetime] = None


class LocationFixResponse(BaseModel):
    id: int
    worker_id: UUID
    equipment_id: Optional[str] = None
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    recorded_at: datetime
    received_at: datetime

    class Config:
        from_attributes = True


class ActiveLocationResponse(LocationFixResponse):
    worker_name: Optional[str] = None


class ActiveLocationListResponse(BaseModel):
    locations: List[ActiveLocationResponse]
    total: int
    since: datetime


class LocationHistoryResponse(BaseModel):
    worker_id: UUID
    locations: list[LocationFixResponse]
    total: int
    start_date: datetime
    end_date: datetime


class PathPointResponse(BaseModel):
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: Optional[float] = None

    class Config:
        from_attributes = True


class StayPointResponse(BaseModel):
    latitude: float
    longitude: float
    start_time: datetime
    end_time: datetime
    duration_seconds: float

    class Config:
        from_attributes = True


class TrajectoryResponse(BaseModel):
    worker_id: UUID
    start_date: datetime
    end_date: datetime
    total_distance: float  # meters
    average_speed: float  # km/h
    max_speed: float  # km/h
    total_time: float  # seconds
    path: List[PathPointResponse]
    stay_points: List[StayPointResponse]
