"""
Trajectory analysis over a worker's location fixes.

Distances are in meters, speeds in km/h and durations in seconds.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from worksite.core.config import settings
from worksite.core.zone_geometry import GeoPoint, centroid, haversine_distance
from worksite.services.location_service import location_service

logger = logging.getLogger(__name__)

MPS_TO_KMH = 3.6


@dataclass(frozen=True)
class StayPointParams:
    spatial_threshold_meters: float
    min_duration_seconds: float

    @classmethod
    def defaults(cls) -> "StayPointParams":
        return cls(
            spatial_threshold_meters=settings.STAY_POINT_RADIUS_METERS,
            min_duration_seconds=settings.STAY_POINT_MIN_DURATION_SECONDS,
        )


@dataclass(frozen=True)
class PathPoint:
    latitude: float
    longitude: float
    timestamp: datetime
    accuracy: Optional[float] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


@dataclass(frozen=True)
class StayPoint:
    latitude: float
    longitude: float
    start_time: datetime
    end_time: datetime
    duration_seconds: float


@dataclass
class TrajectorySummary:
    total_distance: float = 0.0
    average_speed: float = 0.0
    max_speed: float = 0.0
    total_time: float = 0.0
    path: List[PathPoint] = field(default_factory=list)
    stay_points: List[StayPoint] = field(default_factory=list)


def _sort_key(fix):
    # Fixes not yet flushed have no id; the sort is stable so input order holds
    return fix.recorded_at, fix.id if fix.id is not None else 0


def to_path(fixes: Sequence) -> List[PathPoint]:
    """Order fixes by recorded time, ties broken by insertion id"""
    return [
        PathPoint(
            latitude=fix.latitude,
            longitude=fix.longitude,
            timestamp=fix.recorded_at,
            accuracy=fix.accuracy,
        )
        for fix in sorted(fixes, key=_sort_key)
    ]


def extract_stay_points(path: Sequence[PathPoint], params: StayPointParams) -> List[StayPoint]:
    """
    Scan the path for places the worker lingered.

    From anchor ``i``, extend ``j`` while every fix stays within the spatial
    threshold of the anchor. If the run lasts at least the minimum duration it
    becomes a stay point and scanning resumes after it; otherwise the anchor
    moves forward by one.
    """
    stay_points = []
    count = len(path)
    i = 0
    while i < count:
        anchor = path[i]
        j = i
        while (
            j + 1 < count
            and haversine_distance(anchor.point, path[j + 1].point) <= params.spatial_threshold_meters
        ):
            j += 1

        duration = (path[j].timestamp - anchor.timestamp).total_seconds()
        if j > i and duration >= params.min_duration_seconds:
            center = centroid([p.point for p in path[i:j + 1]])
            stay_points.append(StayPoint(
                latitude=center.latitude,
                longitude=center.longitude,
                start_time=anchor.timestamp,
                end_time=path[j].timestamp,
                duration_seconds=duration,
            ))
            i = j + 1
        else:
            i += 1
    return stay_points


def analyze_fixes(fixes: Sequence, params: Optional[StayPointParams] = None) -> TrajectorySummary:
    params = params or StayPointParams.defaults()
    path = to_path(fixes)
    if not path:
        return TrajectorySummary()

    total_distance = 0.0
    max_speed = 0.0
    for prev, cur in zip(path, path[1:]):
        distance = haversine_distance(prev.point, cur.point)
        total_distance += distance
        elapsed = (cur.timestamp - prev.timestamp).total_seconds()
        # Duplicate timestamps add distance but cannot yield a speed
        if elapsed > 0:
            max_speed = max(max_speed, distance / elapsed * MPS_TO_KMH)

    total_time = (path[-1].timestamp - path[0].timestamp).total_seconds()
    average_speed = total_distance / total_time * MPS_TO_KMH if total_time > 0 else 0.0

    return TrajectorySummary(
        total_distance=round(total_distance, 1),
        average_speed=round(average_speed, 1),
        max_speed=round(max_speed, 1),
        total_time=total_time,
        path=path,
        stay_points=extract_stay_points(path, params),
    )


class TrajectoryAnalyzer:
    """Loads a worker's fixes for a time window and summarises the movement"""

    async def analyze(
        self,
        db: AsyncSession,
        worker_id: UUID,
        start: datetime,
        end: datetime,
        params: Optional[StayPointParams] = None
    ) -> TrajectorySummary:
        fixes = await location_service.history(db, worker_id, start, end)
        summary = analyze_fixes(fixes, params)
        logger.debug(
            f"Trajectory for worker {worker_id}: {len(summary.path)} fixes, "
            f"{summary.total_distance}m, {len(summary.stay_points)} stay points"
        )
        return summary


trajectory_analyzer = TrajectoryAnalyzer()
