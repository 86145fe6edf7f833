"""
Attendance check-in routes
"""
from dataclasses import asdict
from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Request, Query
from sqlalchemy.ext.asyncio import AsyncSession

from worksite.models import get_db, User, CheckIn, AuditAction
from worksite.schemas import (
    CheckInRequest, CheckInResponse, CheckInWithDetails, CheckInListResponse,
    TodayStatusResponse, ExpectedWorkerResponse, AttendanceStatsResponse
)
from worksite.core.security import get_current_user, require_manager
from worksite.core.timeutils import local_date, utc_now
from worksite.core.zone_geometry import GeoPoint
from worksite.services import (
    audit_service, attendance_gate, attendance_aggregator, AttendanceScope
)

router = APIRouter(prefix="/check-ins", tags=["Attendance"])


def _with_details(check_in: CheckIn) -> CheckInWithDetails:
    return CheckInWithDetails(
        **CheckInResponse.model_validate(check_in).model_dump(),
        worker_name=check_in.worker.name if check_in.worker else None,
        work_zone_name=check_in.work_zone.name if check_in.work_zone else None
    )


@router.post("", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    check_in_data: CheckInRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Record today's check-in for the authenticated worker.
    """
    record = await attendance_gate.check_in(
        db,
        current_user,
        GeoPoint(check_in_data.latitude, check_in_data.longitude),
        auth_method=check_in_data.auth_method,
        work_zone_id=check_in_data.work_zone_id,
        biometric_credential_id=check_in_data.biometric_credential_id,
        notes=check_in_data.notes,
        device_info=check_in_data.device_info or audit_service.get_user_agent(request)
    )

    await audit_service.log(
        db=db,
        action=AuditAction.CHECK_IN,
        user=current_user,
        request=request,
        target_type="check_in",
        target_id=record.id,
        target_identifier=str(record.worker_id),
        description=f"Checked in ({'within' if record.is_within_zone else 'outside'} work zone)",
        details={
            "work_zone_id": str(record.work_zone_id) if record.work_zone_id else None,
            "distance_from_zone": record.distance_from_zone
        }
    )
    await db.commit()

    return record


@router.get("/today", response_model=TodayStatusResponse)
async def get_today_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Whether the authenticated worker has checked in today.
    """
    now = utc_now()
    worker, record = await attendance_gate.today_status(db, current_user, now=now)

    return TodayStatusResponse(
        worker_id=worker.id,
        date=local_date(now),
        checked_in=record is not None,
        check_in=CheckInResponse.model_validate(record) if record else None
    )


@router.get("/me", response_model=CheckInListResponse)
async def list_my_check_ins(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(30, ge=1, le=366),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    The authenticated worker's own check-in history, newest first.
    """
    worker = await attendance_gate.get_worker_for_user(db, current_user)
    check_ins = await attendance_aggregator.list_check_ins(
        db,
        AttendanceScope(),
        worker_id=worker.id,
        start_date=start_date,
        end_date=end_date,
        limit=limit
    )

    return CheckInListResponse(
        check_ins=[_with_details(c) for c in check_ins],
        total=len(check_ins)
    )


@router.get("", response_model=CheckInListResponse)
async def list_check_ins(
    worker_id: Optional[UUID] = None,
    work_zone_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    List check-ins within the caller's company scope.
    """
    check_ins = await attendance_aggregator.list_check_ins(
        db,
        AttendanceScope.for_user(current_user),
        worker_id=worker_id,
        work_zone_id=work_zone_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit
    )

    return CheckInListResponse(
        check_ins=[_with_details(c) for c in check_ins],
        total=len(check_ins)
    )


@router.get("/stats", response_model=AttendanceStatsResponse)
async def get_attendance_stats(
    request: Request,
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Daily attendance statistics. Defaults to today in the site time zone.
    """
    scope = AttendanceScope.for_user(current_user)
    day = day or local_date(utc_now())

    stats = await attendance_aggregator.daily_stats(db, scope, day)

    await audit_service.log(
        db=db,
        action=AuditAction.ATTENDANCE_STATS_VIEW,
        user=current_user,
        request=request,
        target_type="attendance",
        target_identifier=day.isoformat(),
        description=f"Viewed attendance statistics for {day.isoformat()}"
    )
    await db.commit()

    return AttendanceStatsResponse(
        date=stats.date,
        total=stats.total,
        expected_workers=stats.expected_workers,
        attendance_rate=stats.attendance_rate,
        within_zone=stats.within_zone,
        outside_zone=stats.outside_zone,
        with_biometric=stats.with_biometric,
        morning=stats.morning,
        afternoon=stats.afternoon,
        check_ins=[_with_details(c) for c in stats.check_ins],
        expected_workers_list=[
            ExpectedWorkerResponse(**asdict(w)) for w in stats.expected_workers_list
        ]
    )
