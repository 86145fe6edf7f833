"""
Pydantic schemas for Deployment API
"""
from datetime import date
from typing import Optional
from uuid import UUID
from pydantic import BaseModel
from worksite.models.deployment import DeploymentStatus


class DeploymentResponse(BaseModel):
    id: UUID
    worker_id: UUID
    guide_worker_id: Optional[UUID] = None
    equipment_id: Optional[str] = None
    issuing_company_id: UUID
    partner_company_id: Optional[UUID] = None
    status: DeploymentStatus
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    class Config:
        from_attributes = True


class MyDeploymentResponse(BaseModel):
    worker_id: UUID
    role: Optional[str] = None  # primary, guide
    deployment: Optional[DeploymentResponse] = None
