"""
Work zone management routes
"""
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from worksite.models import get_db, User, UserRole, WorkZone, ZoneType, AuditAction
from worksite.schemas import (
    WorkZoneCreate, WorkZoneUpdate, WorkZoneResponse, WorkZoneListResponse,
    ZoneCheckRequest, ZoneCheckResponse
)
from worksite.core.exceptions import NotFoundError, ValidationError
from worksite.core.security import require_manager, require_zone_manager
from worksite.core.zone_geometry import GeoPoint, validate_geometry
from worksite.services import audit_service, evaluate_zone

router = APIRouter(prefix="/work-zones", tags=["Work Zones"])


def _scoped(query, user: User):
    """Non-admin users only see zones owned by their company"""
    if user.role != UserRole.ADMIN:
        query = query.where(WorkZone.company_id == user.company_id)
    return query


async def _get_visible_zone(db: AsyncSession, zone_id: UUID, user: User) -> WorkZone:
    result = await db.execute(_scoped(select(WorkZone).where(WorkZone.id == zone_id), user))
    zone = result.scalar_one_or_none()
    if not zone:
        raise NotFoundError("Work zone not found")
    return zone


@router.get("", response_model=WorkZoneListResponse)
async def list_work_zones(
    is_active: Optional[bool] = None,
    company_id: Optional[UUID] = None,
    current_user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    List work zones visible to the caller.
    """
    query = _scoped(select(WorkZone), current_user)

    if is_active is not None:
        query = query.where(WorkZone.is_active == is_active)
    if company_id:
        query = query.where(WorkZone.company_id == company_id)

    query = query.order_by(WorkZone.created_at.desc())

    result = await db.execute(query)
    zones = result.scalars().all()

    return WorkZoneListResponse(
        work_zones=zones,
        total=len(zones)
    )


@router.get("/{zone_id}", response_model=WorkZoneResponse)
async def get_work_zone(
    zone_id: UUID,
    current_user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a specific work zone by ID.
    """
    return await _get_visible_zone(db, zone_id, current_user)


@router.post("", response_model=WorkZoneResponse, status_code=status.HTTP_201_CREATED)
async def create_work_zone(
    zone_data: WorkZoneCreate,
    request: Request,
    current_user: User = Depends(require_zone_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a new work zone.
    """
    zone_dict = zone_data.model_dump()

    # ep users always own the zones they draw
    if current_user.role == UserRole.EP:
        zone_dict["company_id"] = current_user.company_id
    if zone_dict["company_id"] is None:
        raise ValidationError("company_id is required")

    if zone_data.zone_type == ZoneType.POLYGON:
        zone_dict["center_latitude"] = None
        zone_dict["center_longitude"] = None
        zone_dict["radius_meters"] = None
    else:
        zone_dict["polygon_coordinates"] = None

    zone = WorkZone(**zone_dict, created_by=current_user.id)
    validate_geometry(zone.geometry)

    db.add(zone)
    await db.flush()

    await audit_service.log(
        db=db,
        action=AuditAction.ZONE_CREATE,
        user=current_user,
        request=request,
        target_type="work_zone",
        target_id=zone.id,
        target_identifier=zone.name,
        description=f"Created work zone '{zone.name}'"
    )

    await db.commit()
    await db.refresh(zone)

    return zone


@router.patch("/{zone_id}", response_model=WorkZoneResponse)
async def update_work_zone(
    zone_id: UUID,
    zone_data: WorkZoneUpdate,
    request: Request,
    current_user: User = Depends(require_zone_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a work zone. The resulting geometry is validated as a whole.
    """
    zone = await _get_visible_zone(db, zone_id, current_user)

    update_data = zone_data.model_dump(exclude_unset=True)

    changes = {}
    for field, value in update_data.items():
        if getattr(zone, field) != value:
            changes[field] = {"old": str(getattr(zone, field)), "new": str(value)}
            setattr(zone, field, value)

    validate_geometry(zone.geometry)

    if changes:
        await audit_service.log(
            db=db,
            action=AuditAction.ZONE_UPDATE,
            user=current_user,
            request=request,
            target_type="work_zone",
            target_id=zone.id,
            target_identifier=zone.name,
            description=f"Updated work zone '{zone.name}'",
            details=changes
        )

    await db.commit()
    await db.refresh(zone)

    return zone


@router.delete("/{zone_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_work_zone(
    zone_id: UUID,
    request: Request,
    current_user: User = Depends(require_zone_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Deactivate a work zone. Past check-ins keep referencing it.
    """
    zone = await _get_visible_zone(db, zone_id, current_user)

    zone.is_active = False

    await audit_service.log(
        db=db,
        action=AuditAction.ZONE_DEACTIVATE,
        user=current_user,
        request=request,
        target_type="work_zone",
        target_id=zone.id,
        target_identifier=zone.name,
        description=f"Deactivated work zone '{zone.name}'"
    )

    await db.commit()


@router.post("/{zone_id}/check", response_model=ZoneCheckResponse)
async def check_point_in_work_zone(
    zone_id: UUID,
    check_data: ZoneCheckRequest,
    current_user: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db)
):
    """
    Check if a point is inside a specific work zone.
    """
    zone = await _get_visible_zone(db, zone_id, current_user)

    result = evaluate_zone(GeoPoint(check_data.latitude, check_data.longitude), zone)

    return ZoneCheckResponse(
        inside=result.is_within,
        work_zone_id=zone.id,
        work_zone_name=zone.name,
        distance_meters=round(result.distance_meters, 1)
    )
