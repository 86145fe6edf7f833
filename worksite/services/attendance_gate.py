"""
Attendance gate: enforces the check-in rules and records check-ins
"""
import logging
from datetime import date, datetime
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from worksite.core.config import settings
from worksite.core.exceptions import (
    AuthorizationError, ConflictError, InternalError, NotFoundError
)
from worksite.core.timeutils import local_date, to_local, to_utc_naive, utc_now
from worksite.core.zone_geometry import GeoPoint, validate_point
from worksite.models import AuthMethod, CheckIn, User, Worker, WorkZone
from worksite.services.deployment_roles import PrimaryRole, find_active_deployment_role
from worksite.services.zone_resolver import ZoneResolution, evaluate_zone, resolve

logger = logging.getLogger(__name__)


class AttendanceGate:
    """Service for worker check-ins"""

    @staticmethod
    async def get_worker_for_user(db: AsyncSession, user: User) -> Worker:
        result = await db.execute(select(Worker).where(Worker.user_id == user.id))
        worker = result.scalar_one_or_none()
        if not worker:
            raise NotFoundError("Worker profile not found")
        return worker

    @staticmethod
    async def get_check_in_for_day(
        db: AsyncSession,
        worker_id: UUID,
        day: date
    ) -> Optional[CheckIn]:
        result = await db.execute(
            select(CheckIn)
            .where(CheckIn.worker_id == worker_id, CheckIn.check_in_date == day)
            .order_by(CheckIn.check_in_time.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _already_checked_in(existing: CheckIn) -> ConflictError:
        at = to_local(existing.check_in_time).strftime("%H:%M")
        return ConflictError(f"Already checked in today ({at})")

    async def _resolve_zone(
        self,
        db: AsyncSession,
        point: GeoPoint,
        company_id: UUID,
        work_zone_id: Optional[UUID]
    ) -> ZoneResolution:
        if work_zone_id:
            zone = await db.get(WorkZone, work_zone_id)
            if not zone:
                raise NotFoundError("Work zone not found")
            if zone.company_id != company_id:
                logger.warning(
                    f"Zone {zone.id} belongs to company {zone.company_id}, "
                    f"deployment is issued by {company_id}"
                )
            if not zone.is_active:
                logger.warning(f"Check-in against inactive zone {zone.id}")
            return evaluate_zone(point, zone)

        result = await db.execute(
            select(WorkZone)
            .where(WorkZone.company_id == company_id, WorkZone.is_active == True)
            .order_by(WorkZone.created_at, WorkZone.id)
        )
        zones = result.scalars().all()
        if not zones:
            logger.info(f"No active work zones for company {company_id}")
        return resolve(point, zones)

    async def check_in(
        self,
        db: AsyncSession,
        user: User,
        point: GeoPoint,
        auth_method: AuthMethod = AuthMethod.PIN,
        work_zone_id: Optional[UUID] = None,
        biometric_credential_id: Optional[str] = None,
        notes: Optional[str] = None,
        device_info: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> CheckIn:
        """
        Record today's check-in for the user's worker profile.

        Being outside every zone does not block the check-in; the record is
        flagged with ``is_within_zone=False`` for later review.

        The row is flushed, not committed: the caller commits it together
        with anything else written in the same request.
        """
        validate_point(point)

        role = user.role.value if user.role else None
        if role not in settings.CHECK_IN_ROLES:
            raise AuthorizationError("Only workers can check in")
        worker = await self.get_worker_for_user(db, user)

        now = to_utc_naive(now) if now else utc_now()
        today = local_date(now)

        existing = await self.get_check_in_for_day(db, worker.id, today)
        if existing:
            raise self._already_checked_in(existing)

        deployment_role = await find_active_deployment_role(db, worker.id)
        if not isinstance(deployment_role, PrimaryRole):
            raise NotFoundError("No active deployment")
        deployment = deployment_role.deployment

        resolution = await self._resolve_zone(
            db, point, deployment.issuing_company_id, work_zone_id
        )
        distance = (
            round(resolution.distance_meters, 1)
            if resolution.distance_meters is not None else None
        )

        if not resolution.is_within:
            logger.warning(
                f"Worker {worker.id} checked in outside work zone "
                f"({distance}m from {resolution.zone.id if resolution.zone else 'no zone'})"
            )

        check_in = CheckIn(
            worker_id=worker.id,
            user_id=user.id,
            deployment_id=deployment.id,
            work_zone_id=resolution.zone.id if resolution.zone else None,
            check_in_time=now,
            check_in_date=today,
            latitude=point.latitude,
            longitude=point.longitude,
            distance_from_zone=distance,
            is_within_zone=resolution.is_within,
            auth_method=auth_method,
            biometric_credential_id=biometric_credential_id,
            device_info=device_info,
            notes=notes
        )
        db.add(check_in)
        worker_id = worker.id

        try:
            await db.flush()
        except IntegrityError as exc:
            # A concurrent request won the (worker, day) unique constraint
            await db.rollback()
            logger.warning(f"Duplicate check-in rejected for worker {worker_id} on {today}")
            raise ConflictError("Already checked in today") from exc
        except SQLAlchemyError as exc:
            await db.rollback()
            logger.error(
                f"Failed to store check-in for worker {worker_id}: {exc}",
                exc_info=True
            )
            raise InternalError() from exc

        logger.info(f"Check-in staged for worker {worker_id} at {now.isoformat()} (within zone: {resolution.is_within})")
        return check_in

    async def today_status(
        self,
        db: AsyncSession,
        user: User,
        now: Optional[datetime] = None
    ) -> Tuple[Worker, Optional[CheckIn]]:
        worker = await self.get_worker_for_user(db, user)
        today = local_date(now or utc_now())
        return worker, await self.get_check_in_for_day(db, worker.id, today)


attendance_gate = AttendanceGate()
