"""
Pydantic schemas for Check-in API
"""
from datetime import date, datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field
from worksite.models.check_in import AuthMethod


class CheckInRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    auth_method: AuthMethod = AuthMethod.PIN
    work_zone_id: Optional[UUID] = None
    biometric_credential_id: Optional[str] = Field(None, max_length=255)
    device_info: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None


class CheckInResponse(BaseModel):
    id: UUID
    worker_id: UUID
    deployment_id: Optional[UUID] = None
    work_zone_id: Optional[UUID] = None
    check_in_time: datetime
    check_in_date: date
    latitude: float
    longitude: float
    distance_from_zone: Optional[float] = None
    is_within_zone: bool
    auth_method: AuthMethod
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class CheckInWithDetails(CheckInResponse):
    worker_name: Optional[str] = None
    work_zone_name: Optional[str] = None


class CheckInListResponse(BaseModel):
    check_ins: list[CheckInWithDetails]
    total: int


class TodayStatusResponse(BaseModel):
    worker_id: UUID
    date: date
    checked_in: bool
    check_in: Optional[CheckInResponse] = None


class ExpectedWorkerResponse(BaseModel):
    worker_id: UUID
    worker_name: Optional[str] = None
    deployment_id: UUID
    has_checked_in: bool

    class Config:
        from_attributes = True


class AttendanceStatsResponse(BaseModel):
    date: date
    total: int
    expected_workers: int
    attendance_rate: float
    within_zone: int
    outside_zone: int
    with_biometric: int
    morning: int
    afternoon: int
    check_ins: List[CheckInWithDetails]
    expected_workers_list: List[ExpectedWorkerResponse]
