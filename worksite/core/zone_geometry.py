"""
Zone geometry primitives for work zone containment and distance tests
"""
import math
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple, Union

from worksite.core.config import settings
from worksite.core.exceptions import ValidationError

# Earth's radius in meters
EARTH_RADIUS_METERS = 6371000

# Planar tolerance (degrees squared) for points lying on a polygon edge
EDGE_TOLERANCE = 1e-12


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class CircleGeometry:
    center: GeoPoint
    radius_meters: float


@dataclass(frozen=True)
class PolygonGeometry:
    vertices: Tuple[GeoPoint, ...]

    def edges(self) -> Iterator[Tuple[GeoPoint, GeoPoint]]:
        n = len(self.vertices)
        for i in range(n):
            yield self.vertices[i], self.vertices[(i + 1) % n]


ZoneGeometry = Union[CircleGeometry, PolygonGeometry]


def haversine_distance(a: GeoPoint, b: GeoPoint) -> float:
    """
    Calculate the great circle distance between two points
    on the earth (specified in decimal degrees).
    Returns distance in meters.
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [a.latitude, a.longitude, b.latitude, b.longitude])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.asin(math.sqrt(min(1.0, h)))

    return c * EARTH_RADIUS_METERS


def centroid(points: Iterable[GeoPoint]) -> GeoPoint:
    """Arithmetic mean of latitudes and longitudes"""
    points = list(points)
    return GeoPoint(
        latitude=sum(p.latitude for p in points) / len(points),
        longitude=sum(p.longitude for p in points) / len(points),
    )


def _on_segment(point: GeoPoint, a: GeoPoint, b: GeoPoint) -> bool:
    px, py = point.longitude, point.latitude
    ax, ay = a.longitude, a.latitude
    bx, by = b.longitude, b.latitude

    cross = (bx - ax) * (py - ay) - (by - ay) * (px - ax)
    if abs(cross) > EDGE_TOLERANCE:
        return False
    return (
        min(ax, bx) - EDGE_TOLERANCE <= px <= max(ax, bx) + EDGE_TOLERANCE
        and min(ay, by) - EDGE_TOLERANCE <= py <= max(ay, by) + EDGE_TOLERANCE
    )


def point_in_polygon(point: GeoPoint, polygon: PolygonGeometry) -> bool:
    """
    Check if a point is inside a polygon using ray casting algorithm.
    Latitude/longitude are treated as planar coordinates (x = longitude,
    y = latitude). Points on an edge count as inside.
    """
    px, py = point.longitude, point.latitude
    inside = False

    for a, b in polygon.edges():
        if _on_segment(point, a, b):
            return True

        # Orient every edge bottom-up so the crossing test does not depend
        # on the winding order of the vertex list
        if a.latitude > b.latitude:
            a, b = b, a
        ax, ay = a.longitude, a.latitude
        bx, by = b.longitude, b.latitude

        if ay <= py < by:
            x_cross = ax + (py - ay) * (bx - ax) / (by - ay)
            if px < x_cross:
                inside = not inside

    return inside


def _segment_distance(point: GeoPoint, a: GeoPoint, b: GeoPoint) -> float:
    """
    Distance in meters from a point to segment ab, measured in a local
    equirectangular projection centred on the point.
    """
    meters_per_degree = math.radians(1) * EARTH_RADIUS_METERS
    lng_scale = math.cos(math.radians(point.latitude))

    ax = (a.longitude - point.longitude) * lng_scale * meters_per_degree
    ay = (a.latitude - point.latitude) * meters_per_degree
    bx = (b.longitude - point.longitude) * lng_scale * meters_per_degree
    by = (b.latitude - point.latitude) * meters_per_degree

    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(ax, ay)

    t = max(0.0, min(1.0, -(ax * dx + ay * dy) / length_sq))
    return math.hypot(ax + t * dx, ay + t * dy)


def contains_point(geometry: ZoneGeometry, point: GeoPoint) -> bool:
    if isinstance(geometry, CircleGeometry):
        return haversine_distance(geometry.center, point) <= geometry.radius_meters
    return point_in_polygon(point, geometry)


def distance_to_zone(geometry: ZoneGeometry, point: GeoPoint) -> float:
    """
    Circle: distance to the center (the containment threshold compares the
    same value against the radius).
    Polygon: 0 inside, otherwise the distance to the nearest edge.
    """
    if isinstance(geometry, CircleGeometry):
        return haversine_distance(geometry.center, point)

    if point_in_polygon(point, geometry):
        return 0.0
    return min(_segment_distance(point, a, b) for a, b in geometry.edges())


def _planar_area(polygon: PolygonGeometry) -> float:
    """Signed shoelace area in degrees squared, relative to the first vertex"""
    origin = polygon.vertices[0]
    total = 0.0
    for a, b in polygon.edges():
        ax, ay = a.longitude - origin.longitude, a.latitude - origin.latitude
        bx, by = b.longitude - origin.longitude, b.latitude - origin.latitude
        total += ax * by - bx * ay
    return total / 2


def validate_point(point: GeoPoint) -> None:
    lat, lng = point.latitude, point.longitude
    if not (isinstance(lat, (int, float)) and isinstance(lng, (int, float))):
        raise ValidationError("Coordinates must be numeric")
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValidationError("Coordinates must be finite numbers")
    if not -90 <= lat <= 90:
        raise ValidationError("Latitude must be between -90 and 90")
    if not -180 <= lng <= 180:
        raise ValidationError("Longitude must be between -180 and 180")


def validate_geometry(geometry: ZoneGeometry) -> None:
    """Reject malformed zones before they can be stored or evaluated."""
    if isinstance(geometry, CircleGeometry):
        validate_point(geometry.center)
        radius = geometry.radius_meters
        if radius is None or not math.isfinite(radius) or not (
            settings.MIN_ZONE_RADIUS_METERS <= radius <= settings.MAX_ZONE_RADIUS_METERS
        ):
            raise ValidationError(
                f"Radius must be between {settings.MIN_ZONE_RADIUS_METERS} "
                f"and {settings.MAX_ZONE_RADIUS_METERS} meters"
            )
        return

    if len(set(geometry.vertices)) < 3:
        raise ValidationError("Polygon requires at least 3 distinct coordinates")
    for vertex in geometry.vertices:
        validate_point(vertex)
    if abs(_planar_area(geometry)) <= EDGE_TOLERANCE:
        raise ValidationError("Polygon coordinates must enclose an area")


def polygon_from_coordinates(coordinates: List[dict]) -> PolygonGeometry:
    """Build a polygon from stored ``[{"lat": .., "lng": ..}]`` coordinates"""
    return PolygonGeometry(
        vertices=tuple(GeoPoint(latitude=c["lat"], longitude=c["lng"]) for c in coordinates)
    )


def polygon_to_coordinates(polygon: PolygonGeometry) -> List[dict]:
    return [{"lat": v.latitude, "lng": v.longitude} for v in polygon.vertices]
