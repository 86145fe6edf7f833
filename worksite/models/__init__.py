"""
Database models package
"""
from worksite.models.database import Base, get_db, init_db
from worksite.models.user import User, UserRole
from worksite.models.worker import Worker
from worksite.models.work_zone import WorkZone, ZoneType
from worksite.models.deployment import Deployment, DeploymentStatus
from worksite.models.check_in import CheckIn, AuthMethod
from worksite.models.location import LocationFix
from worksite.models.audit import AuditLog, AuditAction

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "User",
    "UserRole",
    "Worker",
    "WorkZone",
    "ZoneType",
    "Deployment",
    "DeploymentStatus",
    "CheckIn",
    "AuthMethod",
    "LocationFix",
    "AuditLog",
    "AuditAction",
]
