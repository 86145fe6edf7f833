"""
Resolve which active deployment a worker belongs to, and in what role.

A worker is attached to a deployment either as its primary worker or as its
guide worker. The lookup happens in one place: primary assignments first
(most recently created wins), then guide assignments.
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Union
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from worksite.models import Deployment, DeploymentStatus


@dataclass(frozen=True)
class PrimaryRole:
    worker_id: UUID
    deployment: Deployment

    kind = "primary"


@dataclass(frozen=True)
class GuideRole:
    worker_id: UUID
    deployment: Deployment

    kind = "guide"


DeploymentRole = Union[PrimaryRole, GuideRole]


def _newest_first(deployments):
    return sorted(deployments, key=lambda d: d.created_at, reverse=True)


def resolve_deployment_role(
    worker_id: UUID,
    deployments: Sequence[Deployment]
) -> Optional[DeploymentRole]:
    for deployment in _newest_first(deployments):
        if deployment.worker_id == worker_id:
            return PrimaryRole(worker_id=worker_id, deployment=deployment)
    for deployment in _newest_first(deployments):
        if deployment.guide_worker_id == worker_id:
            return GuideRole(worker_id=worker_id, deployment=deployment)
    return None


async def find_active_deployment_role(
    db: AsyncSession,
    worker_id: UUID
) -> Optional[DeploymentRole]:
    result = await db.execute(
        select(Deployment).where(
            Deployment.status == DeploymentStatus.ACTIVE,
            or_(Deployment.worker_id == worker_id, Deployment.guide_worker_id == worker_id)
        )
    )
    return resolve_deployment_role(worker_id, result.scalars().all())
