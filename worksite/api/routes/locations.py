"""
Location tracking routes
"""
from dataclasses import asdict
from typing import Optional, Tuple
from uuid import UUID
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, status, Request, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from worksite.models import get_db, User, UserRole, Deployment
from worksite.schemas import (
    LocationFixCreate, LocationFixResponse, LocationHistoryResponse,
    ActiveLocationResponse, ActiveLocationListResponse,
    PathPointResponse, StayPointResponse, TrajectoryResponse
)
from worksite.core.config import settings
from worksite.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from worksite.core.security import get_current_user, require_manager
from worksite.core.timeutils import to_utc_naive, utc_now
from worksite.services import (
    audit_service, attendance_gate, location_service, trajectory_analyzer,
    AttendanceScope, StayPointParams
)

router = APIRouter(prefix="/locations", tags=["Location Tracking"])


async def _ensure_worker_access(db: AsyncSession, user: User, worker_id: UUID) -> None:
    """
    Workers may only touch their own track. Company users are limited to
    workers deployed for their company; admins see everyone.
    """
    if user.role == UserRole.ADMIN:
        return

    if user.role == UserRole.WORKER:
        worker = await attendance_gate.get_worker_for_user(db, user)
        if worker.id != worker_id:
            raise AuthorizationError("Workers can only access their own location data")
        return

    scope = AttendanceScope.for_user(user)
    result = await db.execute(
        scope.apply(
            select(Deployment.id).where(
                or_(Deployment.worker_id == worker_id, Deployment.guide_worker_id == worker_id)
            ).limit(1)
        )
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Worker not found")


def _time_window(
    start_date: Optional[datetime],
    end_date: Optional[datetime]
) -> Tuple[datetime, datetime]:
    """Default to the last LOCATION_HISTORY_DEFAULT_HOURS"""
    end = to_utc_naive(end_date) if end_date else utc_now()
    start = (
        to_utc_naive(start_date) if start_date
        else end - timedelta(hours=settings.LOCATION_HISTORY_DEFAULT_HOURS)
    )
    if start > end:
        raise ValidationError("start_date must not be after end_date")
    return start, end


@router.post("", response_model=LocationFixResponse, status_code=status.HTTP_201_CREATED)
async def ingest_location(
    fix_data: LocationFixCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Store a GPS fix for a worker.
    """
    await _ensure_worker_access(db, current_user, fix_data.worker_id)

    fix = await location_service.record_fix(
        db,
        worker_id=fix_data.worker_id,
        latitude=fix_data.latitude,
        longitude=fix_data.longitude,
        accuracy=fix_data.accuracy,
        equipment_id=fix_data.equipment_id,
        recorded_at=fix_data.recorded_at
    )
    await db.commit()

    return fix


@router.get("/active", response_model=ActiveLocationListResponse)
async def get_active_locations(
    current_user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Latest position of every worker seen in the last few minutes, for the
    live tracking map.
    """
    scope = AttendanceScope.for_user(current_user)
    since = utc_now() - timedelta(minutes=settings.ACTIVE_LOCATION_WINDOW_MINUTES)

    fixes = await location_service.active_locations(db, scope, since)

    return ActiveLocationListResponse(
        locations=[
            ActiveLocationResponse(
                **LocationFixResponse.model_validate(fix).model_dump(),
                worker_name=fix.worker.name if fix.worker else None
            )
            for fix in fixes
        ],
        total=len(fixes),
        since=since
    )


@router.get("/equipment/{equipment_id}/latest", response_model=LocationFixResponse)
async def get_latest_equipment_location(
    equipment_id: str,
    current_user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Most recent fix reported for a piece of equipment.
    """
    scope = AttendanceScope.for_user(current_user)
    if not scope.is_global:
        result = await db.execute(
            scope.apply(
                select(Deployment.id).where(Deployment.equipment_id == equipment_id).limit(1)
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Equipment not found")

    fix = await location_service.latest_fix_for_equipment(db, equipment_id)
    if not fix:
        raise NotFoundError("No location recorded for this equipment")

    return fix


@router.get("/{worker_id}/latest", response_model=LocationFixResponse)
async def get_latest_location(
    worker_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Most recent fix recorded for a worker.
    """
    await _ensure_worker_access(db, current_user, worker_id)

    fix = await location_service.latest_fix(db, worker_id)
    if not fix:
        raise NotFoundError("No location recorded for this worker")

    return fix


@router.get("/{worker_id}/history", response_model=LocationHistoryResponse)
async def get_location_history(
    worker_id: UUID,
    request: Request,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Location history for a worker, oldest first.
    """
    await _ensure_worker_access(db, current_user, worker_id)
    start, end = _time_window(start_date, end_date)

    locations = await location_service.history(db, worker_id, start, end)

    # Log history access
    await audit_service.log_location_access(
        db=db,
        user=current_user,
        request=request,
        worker_id=worker_id,
        access_type="history"
    )
    await db.commit()

    return LocationHistoryResponse(
        worker_id=worker_id,
        locations=[LocationFixResponse.model_validate(loc) for loc in locations],
        total=len(locations),
        start_date=start,
        end_date=end
    )


@router.get("/{worker_id}/analysis", response_model=TrajectoryResponse)
async def get_trajectory_analysis(
    worker_id: UUID,
    request: Request,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    stay_radius: Optional[float] = Query(None, gt=0, le=10000),
    stay_duration: Optional[float] = Query(None, gt=0, le=86400),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Distance, speed and stay points for a worker's track.

    ``stay_radius`` (meters) and ``stay_duration`` (seconds) override the
    configured stay point thresholds.
    """
    await _ensure_worker_access(db, current_user, worker_id)
    start, end = _time_window(start_date, end_date)

    defaults = StayPointParams.defaults()
    params = StayPointParams(
        spatial_threshold_meters=stay_radius or defaults.spatial_threshold_meters,
        min_duration_seconds=stay_duration or defaults.min_duration_seconds,
    )

    summary = await trajectory_analyzer.analyze(db, worker_id, start, end, params)

    await audit_service.log_location_access(
        db=db,
        user=current_user,
        request=request,
        worker_id=worker_id,
        access_type="trajectory"
    )
    await db.commit()

    return TrajectoryResponse(
        worker_id=worker_id,
        start_date=start,
        end_date=end,
        total_distance=summary.total_distance,
        average_speed=summary.average_speed,
        max_speed=summary.max_speed,
        total_time=summary.total_time,
        path=[PathPointResponse(**asdict(p)) for p in summary.path],
        stay_points=[StayPointResponse(**asdict(s)) for s in summary.stay_points]
    )
