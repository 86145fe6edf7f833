"""
Zone resolution: attribute a position to the best matching work zone
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from worksite.core.zone_geometry import GeoPoint, contains_point, distance_to_zone
from worksite.models.work_zone import WorkZone


@dataclass(frozen=True)
class ZoneResolution:
    zone: Optional[WorkZone]
    distance_meters: Optional[float]
    is_within: bool


def evaluate_zone(point: GeoPoint, zone: WorkZone) -> ZoneResolution:
    """Containment and distance against a single zone"""
    geometry = zone.geometry
    return ZoneResolution(
        zone=zone,
        distance_meters=distance_to_zone(geometry, point),
        is_within=contains_point(geometry, point),
    )


def resolve(point: GeoPoint, zones: Sequence[WorkZone]) -> ZoneResolution:
    """
    Prefer an enclosing zone, else the nearest one.

    Among zones containing the point the one with the smallest distance wins;
    ties keep the first enumerated zone. When no zone contains the point the
    overall nearest zone is returned with ``is_within=False``.
    """
    if not zones:
        return ZoneResolution(zone=None, distance_meters=None, is_within=False)

    enclosing: Optional[ZoneResolution] = None
    nearest: Optional[ZoneResolution] = None

    for zone in zones:
        result = evaluate_zone(point, zone)
        if result.is_within:
            if enclosing is None or result.distance_meters < enclosing.distance_meters:
                enclosing = result
        elif nearest is None or result.distance_meters < nearest.distance_meters:
            nearest = result

    return enclosing or nearest
