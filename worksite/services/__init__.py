"""
Services package
"""
from worksite.services.audit_service import audit_service, AuditService
from worksite.services.zone_resolver import ZoneResolution, evaluate_zone, resolve
from worksite.services.deployment_roles import (
    PrimaryRole, GuideRole, DeploymentRole, resolve_deployment_role, find_active_deployment_role
)
from worksite.services.attendance_gate import attendance_gate, AttendanceGate
from worksite.services.attendance_aggregator import (
    attendance_aggregator, AttendanceAggregator, AttendanceScope, DailyStats
)
from worksite.services.location_service import location_service, LocationService
from worksite.services.trajectory_analyzer import (
    trajectory_analyzer, TrajectoryAnalyzer, StayPointParams, TrajectorySummary, analyze_fixes
)

__all__ = [
    "audit_service",
    "AuditService",
    "ZoneResolution",
    "evaluate_zone",
    "resolve",
    "PrimaryRole",
    "GuideRole",
    "DeploymentRole",
    "resolve_deployment_role",
    "find_active_deployment_role",
    "attendance_gate",
    "AttendanceGate",
    "attendance_aggregator",
    "AttendanceAggregator",
    "AttendanceScope",
    "DailyStats",
    "location_service",
    "LocationService",
    "trajectory_analyzer",
    "TrajectoryAnalyzer",
    "StayPointParams",
    "TrajectorySummary",
    "analyze_fixes",
]
