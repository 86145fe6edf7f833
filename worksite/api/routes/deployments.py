"""
Deployment routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from worksite.models import get_db, User
from worksite.schemas import DeploymentResponse, MyDeploymentResponse
from worksite.core.security import get_current_user
from worksite.services import attendance_gate, find_active_deployment_role

router = APIRouter(prefix="/deployments", tags=["Deployments"])


@router.get("/me", response_model=MyDeploymentResponse)
async def get_my_deployment(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    The authenticated worker's active deployment and whether they are its
    primary or guide worker.
    """
    worker = await attendance_gate.get_worker_for_user(db, current_user)
    role = await find_active_deployment_role(db, worker.id)

    if role is None:
        return MyDeploymentResponse(worker_id=worker.id)

    return MyDeploymentResponse(
        worker_id=worker.id,
        role=role.kind,
        deployment=DeploymentResponse.model_validate(role.deployment)
    )
