"""
Attendance statistics: expected vs. actual check-ins for a calendar day
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from worksite.core.exceptions import AuthorizationError
from worksite.core.timeutils import local_hour
from worksite.models import (
    AuthMethod, CheckIn, Deployment, DeploymentStatus, User, UserRole, WorkZone
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceScope:
    """
    Visibility filter for attendance data. No company ids means global scope.
    """
    issuing_company_id: Optional[UUID] = None
    partner_company_id: Optional[UUID] = None

    @property
    def is_global(self) -> bool:
        return self.issuing_company_id is None and self.partner_company_id is None

    @classmethod
    def for_user(cls, user: User) -> "AttendanceScope":
        if user.role == UserRole.ADMIN:
            return cls()
        if user.role == UserRole.EP and user.company_id:
            return cls(issuing_company_id=user.company_id)
        if user.role == UserRole.BP and user.company_id:
            return cls(partner_company_id=user.company_id)
        raise AuthorizationError("Insufficient permissions for attendance data")

    def apply(self, query):
        """Restrict a query that already selects or joins Deployment"""
        if self.issuing_company_id:
            query = query.where(Deployment.issuing_company_id == self.issuing_company_id)
        if self.partner_company_id:
            query = query.where(Deployment.partner_company_id == self.partner_company_id)
        return query


@dataclass
class ExpectedWorker:
    worker_id: UUID
    worker_name: Optional[str]
    deployment_id: UUID
    has_checked_in: bool


@dataclass
class DailyStats:
    date: date
    total: int = 0
    expected_workers: int = 0
    attendance_rate: float = 0.0
    within_zone: int = 0
    outside_zone: int = 0
    with_biometric: int = 0
    morning: int = 0
    afternoon: int = 0
    check_ins: List[CheckIn] = field(default_factory=list)
    expected_workers_list: List[ExpectedWorker] = field(default_factory=list)


def deduplicate_by_worker(check_ins: List[CheckIn]) -> List[CheckIn]:
    """Keep the most recent check-in per worker, newest first"""
    latest: Dict[UUID, CheckIn] = {}
    for check_in in check_ins:
        current = latest.get(check_in.worker_id)
        if current is None or check_in.check_in_time > current.check_in_time:
            latest[check_in.worker_id] = check_in
    return sorted(latest.values(), key=lambda c: c.check_in_time, reverse=True)


def attendance_rate(total: int, expected: int) -> float:
    if total > 0 and expected > 0:
        return round(total / expected * 100, 1)
    return 0.0


class AttendanceAggregator:
    """Read-only attendance reporting"""

    async def list_check_ins(
        self,
        db: AsyncSession,
        scope: AttendanceScope,
        worker_id: Optional[UUID] = None,
        work_zone_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None
    ) -> List[CheckIn]:
        query = select(CheckIn).options(
            selectinload(CheckIn.worker), selectinload(CheckIn.work_zone)
        )
        if not scope.is_global:
            query = scope.apply(query.join(Deployment, CheckIn.deployment_id == Deployment.id))

        if worker_id:
            query = query.where(CheckIn.worker_id == worker_id)
        if work_zone_id:
            query = query.where(CheckIn.work_zone_id == work_zone_id)
        if start_date:
            query = query.where(CheckIn.check_in_date >= start_date)
        if end_date:
            query = query.where(CheckIn.check_in_date <= end_date)

        query = query.order_by(CheckIn.check_in_time.desc())
        if limit:
            query = query.limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    async def _expected_deployments(
        self,
        db: AsyncSession,
        scope: AttendanceScope
    ) -> List[Deployment]:
        query = scope.apply(
            select(Deployment)
            .options(selectinload(Deployment.worker))
            .where(Deployment.status == DeploymentStatus.ACTIVE)
            .order_by(Deployment.created_at)
        )
        deployments = (await db.execute(query)).scalars().all()

        # Only companies owning an active zone define an attendance expectation
        zone_result = await db.execute(
            select(WorkZone.company_id).where(WorkZone.is_active == True).distinct()
        )
        zone_companies = {company_id for company_id in zone_result.scalars().all() if company_id}

        return [d for d in deployments if d.issuing_company_id in zone_companies]

    async def daily_stats(
        self,
        db: AsyncSession,
        scope: AttendanceScope,
        day: date
    ) -> DailyStats:
        check_ins = deduplicate_by_worker(
            await self.list_check_ins(db, scope, start_date=day, end_date=day)
        )
        deployments = await self._expected_deployments(db, scope)

        checked_in_workers = {c.worker_id for c in check_ins}
        expected: Dict[UUID, ExpectedWorker] = {}
        for deployment in deployments:
            if deployment.worker_id in expected:
                continue
            expected[deployment.worker_id] = ExpectedWorker(
                worker_id=deployment.worker_id,
                worker_name=deployment.worker.name if deployment.worker else None,
                deployment_id=deployment.id,
                has_checked_in=deployment.worker_id in checked_in_workers,
            )

        total = len(check_ins)
        within_zone = sum(1 for c in check_ins if c.is_within_zone)
        morning = sum(1 for c in check_ins if local_hour(c.check_in_time) < 12)

        stats = DailyStats(
            date=day,
            total=total,
            expected_workers=len(expected),
            attendance_rate=attendance_rate(total, len(expected)),
            within_zone=within_zone,
            outside_zone=total - within_zone,
            with_biometric=sum(1 for c in check_ins if c.auth_method == AuthMethod.BIOMETRIC),
            morning=morning,
            afternoon=total - morning,
            check_ins=check_ins,
            expected_workers_list=list(expected.values()),
        )
        logger.debug(
            f"Attendance {day}: {stats.total}/{stats.expected_workers} "
            f"({stats.attendance_rate}%)"
        )
        return stats


attendance_aggregator = AttendanceAggregator()
