"""
Location fix ingestion and history queries
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from worksite.core.exceptions import NotFoundError
from worksite.core.timeutils import to_utc_naive, utc_now
from worksite.core.zone_geometry import GeoPoint, validate_point
from worksite.models import Deployment, DeploymentStatus, LocationFix, Worker
from worksite.services.attendance_aggregator import AttendanceScope

logger = logging.getLogger(__name__)


class LocationService:
    """Append-only storage of worker GPS fixes"""

    async def record_fix(
        self,
        db: AsyncSession,
        worker_id: UUID,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        equipment_id: Optional[str] = None,
        recorded_at: Optional[datetime] = None
    ) -> LocationFix:
        validate_point(GeoPoint(latitude, longitude))

        worker = await db.get(Worker, worker_id)
        if not worker:
            raise NotFoundError("Worker not found")

        now = utc_now()
        fix = LocationFix(
            worker_id=worker_id,
            equipment_id=equipment_id,
            latitude=latitude,
            longitude=longitude,
            accuracy=accuracy,
            recorded_at=to_utc_naive(recorded_at) if recorded_at else now,
            received_at=now
        )
        db.add(fix)
        await db.flush()

        logger.debug(f"Location logged: worker {worker_id} at ({latitude}, {longitude})")
        return fix

    async def latest_fix(self, db: AsyncSession, worker_id: UUID) -> Optional[LocationFix]:
        result = await db.execute(
            select(LocationFix)
            .where(LocationFix.worker_id == worker_id)
            .order_by(LocationFix.recorded_at.desc(), LocationFix.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def history(
        self,
        db: AsyncSession,
        worker_id: UUID,
        start: datetime,
        end: datetime
    ) -> List[LocationFix]:
        """Fixes with recorded_at in [start, end], oldest first"""
        result = await db.execute(
            select(LocationFix).where(
                and_(
                    LocationFix.worker_id == worker_id,
                    LocationFix.recorded_at >= to_utc_naive(start),
                    LocationFix.recorded_at <= to_utc_naive(end)
                )
            ).order_by(LocationFix.recorded_at.asc(), LocationFix.id.asc())
        )
        return list(result.scalars().all())


    async def latest_fix_for_equipment(
        self,
        db: AsyncSession,
        equipment_id: str
    ) -> Optional[LocationFix]:
        result = await db.execute(
            select(LocationFix)
            .where(LocationFix.equipment_id == equipment_id)
            .order_by(LocationFix.recorded_at.desc(), LocationFix.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def active_locations(
        self,
        db: AsyncSession,
        scope: AttendanceScope,
        since: datetime
    ) -> List[LocationFix]:
        """
        Latest fix per worker recorded at or after ``since``, newest first.

        Outside the global scope a fix is visible when its worker or its
        equipment belongs to an active deployment within the scope.
        """
        query = (
            select(LocationFix)
            .options(selectinload(LocationFix.worker))
            .where(LocationFix.recorded_at >= to_utc_naive(since))
            .order_by(LocationFix.recorded_at.desc(), LocationFix.id.desc())
        )

        if not scope.is_global:
            deployments = scope.apply(
                select(Deployment).where(Deployment.status == DeploymentStatus.ACTIVE)
            ).subquery()
            query = query.where(
                or_(
                    LocationFix.worker_id.in_(select(deployments.c.worker_id)),
                    LocationFix.worker_id.in_(
                        select(deployments.c.guide_worker_id)
                        .where(deployments.c.guide_worker_id.is_not(None))
                    ),
                    LocationFix.equipment_id.in_(
                        select(deployments.c.equipment_id)
                        .where(deployments.c.equipment_id.is_not(None))
                    ),
                )
            )

        result = await db.execute(query)

        latest: Dict[UUID, LocationFix] = {}
        for fix in result.scalars().all():
            latest.setdefault(fix.worker_id, fix)
        return list(latest.values())


location_service = LocationService()
