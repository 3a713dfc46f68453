"""Planar geometry primitives for the earring designer.

Points are plain value tuples and polygons are lists of points, implicitly
closed (the last vertex connects back to the first). Winding matters:
counter-clockwise polygons are solid, clockwise polygons are holes once the
outline is filled with the even-odd rule.
"""

import math
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

# Base tolerance for coordinate comparisons
EPSILON = 1e-5

# Shrinking never moves a vertex further than this fraction of its distance to the centroid
SHRINK_CLAMP = 0.99


class GeometryError(ValueError):
    """Raised for impossible geometry requests."""


class Point(NamedTuple):
    """A 2D point."""
    x: float
    y: float


Polygon = List[Point]


def to_point(value: Sequence[float]) -> Point:
    """Coerce an (x, y) pair, numpy row or Point into a Point."""
    return Point(float(value[0]), float(value[1]))


def to_polygon(values: Iterable[Sequence[float]]) -> Polygon:
    """Coerce a sequence of (x, y) pairs into a Polygon."""
    return [to_point(v) for v in values]


def points_close(a: Point, b: Point, tolerance: float = EPSILON) -> bool:
    """True when both coordinates of *a* and *b* differ by less than *tolerance*."""
    return abs(a[0] - b[0]) < tolerance and abs(a[1] - b[1]) < tolerance


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def is_point_inside_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Even-odd ray casting test.

    Points exactly on an edge are resolved by the half-open crossing rule, so a
    point on an edge shared by two cells is inside exactly one of them.
    """
    if polygon is None or len(polygon) < 3:
        return False

    x, y = point[0], point[1]
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def signed_area(polygon: Sequence[Point]) -> float:
    """Shoelace area, positive for counter-clockwise winding."""
    n = len(polygon)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += polygon[i][0] * polygon[j][1] - polygon[j][0] * polygon[i][1]
    return area / 2.0


def polygon_centroid(polygon: Sequence[Point]) -> Optional[Point]:
    """Area-weighted centroid of a polygon.

    Degenerate (zero-area) polygons fall back to the mean of their vertices.

    Args:
        polygon: Sequence of vertices

    Returns:
        Centroid point, or None for an empty polygon
    """
    if polygon is None or len(polygon) == 0:
        return None

    n = len(polygon)
    area = 0.0
    cx = 0.0
    cy = 0.0

    for i in range(n):
        j = (i + 1) % n
        a = polygon[i][0] * polygon[j][1] - polygon[j][0] * polygon[i][1]
        area += a
        cx += (polygon[i][0] + polygon[j][0]) * a
        cy += (polygon[i][1] + polygon[j][1]) * a

    area *= 0.5
    if abs(area) < EPSILON:
        mean = np.mean(np.asarray(polygon, dtype=float), axis=0)
        return Point(float(mean[0]), float(mean[1]))

    return Point(cx / (6.0 * area), cy / (6.0 * area))


def offset_polygon(polygon: Sequence[Point], distance: float) -> Optional[Polygon]:
    """Grow or shrink a polygon by moving each vertex along its centroid ray.

    Negative distances shrink. A shrinking vertex moves at most
    ``SHRINK_CLAMP`` of the way to the centroid, so the polygon never turns
    inside out. Vertices sitting on the centroid are left where they are.

    Args:
        polygon: Polygon with at least 3 vertices
        distance: Signed offset distance

    Returns:
        Offset polygon with the same vertex count, or None for degenerate input
    """
    if polygon is None or len(polygon) < 3:
        return None

    centroid = polygon_centroid(polygon)
    if centroid is None:
        return None

    offset: Polygon = []
    for vertex in polygon:
        dx = vertex[0] - centroid.x
        dy = vertex[1] - centroid.y
        length = math.hypot(dx, dy)
        if length < EPSILON:
            offset.append(Point(vertex[0], vertex[1]))
            continue

        if distance < 0:
            effective = -min(-distance, length * SHRINK_CLAMP)
        else:
            effective = distance

        offset.append(Point(vertex[0] + dx / length * effective,
                            vertex[1] + dy / length * effective))

    return offset if len(offset) >= 3 else None


def circle_to_polygon(center: Point, radius: float, segments: int = 24) -> Polygon:
    """Approximate a circle by a regular counter-clockwise polygon."""
    if radius <= 0:
        raise GeometryError(f"Circle radius must be positive: r={radius}")
    if segments < 3:
        raise GeometryError(f"Circle needs at least 3 segments: n={segments}")

    return [Point(center[0] + math.cos(2 * math.pi * i / segments) * radius,
                  center[1] + math.sin(2 * math.pi * i / segments) * radius)
            for i in range(segments)]


def reverse_winding(polygon: Sequence[Point]) -> Polygon:
    """Return a copy of *polygon* with its vertex order reversed."""
    return list(reversed(polygon))


def bounding_box(points: Iterable[Sequence[float]]) -> Optional[Tuple[float, float, float, float]]:
    """(xmin, ymin, xmax, ymax) of a point collection, None when empty."""
    arr = np.asarray(list(points), dtype=float)
    if arr.size == 0:
        return None
    xmin, ymin = arr.min(axis=0)
    xmax, ymax = arr.max(axis=0)
    return float(xmin), float(ymin), float(xmax), float(ymax)


def bounding_box_area(polygon: Sequence[Point]) -> float:
    box = bounding_box(polygon)
    if box is None:
        return 0.0
    return (box[2] - box[0]) * (box[3] - box[1])


def dedupe_consecutive(polygon: Sequence[Point], tolerance: float = EPSILON) -> Polygon:
    """Drop vertices coincident with their predecessor, including a closing repeat."""
    cleaned: Polygon = []
    for p in polygon:
        if cleaned and points_close(cleaned[-1], p, tolerance):
            continue
        cleaned.append(to_point(p))
    while len(cleaned) > 1 and points_close(cleaned[0], cleaned[-1], tolerance):
        cleaned.pop()
    return cleaned
