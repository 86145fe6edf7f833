"""
Pydantic schemas package
"""
from worksite.schemas.user import (
    UserResponse, LoginRequest, TokenResponse, RefreshTokenRequest
)
from worksite.schemas.work_zone import (
    CoordinatePoint, WorkZoneBase, WorkZoneCreate, WorkZoneUpdate,
    WorkZoneResponse, WorkZoneListResponse, ZoneCheckRequest, ZoneCheckResponse
)
from worksite.schemas.check_in import (
    CheckInRequest, CheckInResponse, CheckInWithDetails, CheckInListResponse,
    TodayStatusResponse, ExpectedWorkerResponse, AttendanceStatsResponse
)
from worksite.schemas.location import (
    LocationFixCreate, LocationFixResponse, LocationHistoryResponse,
    ActiveLocationResponse, ActiveLocationListResponse,
    PathPointResponse, StayPointResponse, TrajectoryResponse
)
from worksite.schemas.deployment import DeploymentResponse, MyDeploymentResponse

__all__ = [
    # User
    "UserResponse", "LoginRequest", "TokenResponse", "RefreshTokenRequest",
    # Work zone
    "CoordinatePoint", "WorkZoneBase", "WorkZoneCreate", "WorkZoneUpdate",
    "WorkZoneResponse", "WorkZoneListResponse", "ZoneCheckRequest", "ZoneCheckResponse",
    # Check-in
    "CheckInRequest", "CheckInResponse", "CheckInWithDetails", "CheckInListResponse",
    "TodayStatusResponse", "ExpectedWorkerResponse", "AttendanceStatsResponse",
    # Location
    "LocationFixCreate", "LocationFixResponse", "LocationHistoryResponse",
    "ActiveLocationResponse", "ActiveLocationListResponse",
    "PathPointResponse", "StayPointResponse", "TrajectoryResponse",
    # Deployment
    "DeploymentResponse", "MyDeploymentResponse",
]
