"""Corner rounding of closed polygons into drawable path commands.

Each rounded corner becomes a quadratic Bezier whose control point is the
original vertex and whose end points are the tangent points on the two
adjacent edges, ``radius`` away from the vertex. The radius at a corner is
clamped to half of the shorter adjacent edge so neighbouring roundings never
overlap.
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Union

from .geometry import EPSILON, Point, distance, points_close

# Edges shorter than this are never rounded
MIN_EDGE_LENGTH = 1e-6


@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class LineTo:
    point: Point


@dataclass(frozen=True)
class QuadTo:
    control: Point
    end: Point


@dataclass(frozen=True)
class ClosePath:
    pass


PathCommand = Union[MoveTo, LineTo, QuadTo, ClosePath]


class Corner(NamedTuple):
    """Rounding decision for one vertex."""
    vertex: Point
    sharp: bool
    entry: Optional[Point]  # tangent point on the incoming edge
    exit: Optional[Point]   # tangent point on the outgoing edge


def corner_geometry(prev: Point, vertex: Point, nxt: Point, radius: float) -> Corner:
    """Tangent points of the rounding at *vertex*, or a sharp corner."""
    len1 = distance(prev, vertex)
    len2 = distance(vertex, nxt)
    max_radius = min(len1, len2) / 2.0
    actual = min(max(radius, 0.0), max_radius)

    if actual < EPSILON or len1 < MIN_EDGE_LENGTH or len2 < MIN_EDGE_LENGTH:
        return Corner(vertex, True, None, None)

    entry = Point(vertex.x + (prev.x - vertex.x) / len1 * actual,
                  vertex.y + (prev.y - vertex.y) / len1 * actual)
    exit_ = Point(vertex.x + (nxt.x - vertex.x) / len2 * actual,
                  vertex.y + (nxt.y - vertex.y) / len2 * actual)
    return Corner(vertex, False, entry, exit_)


def _sharp_commands(polygon: Sequence[Point]) -> List[PathCommand]:
    start = Point(polygon[0][0], polygon[0][1])
    commands: List[PathCommand] = [MoveTo(start)]
    last = start
    for p in polygon[1:]:
        p = Point(p[0], p[1])
        if points_close(p, last):
            continue
        commands.append(LineTo(p))
        last = p

    # A trailing vertex equal to the start is implied by the close
    if len(commands) > 1 and points_close(last, start):
        commands.pop()

    if len(commands) < 3:
        return []
    commands.append(ClosePath())
    return commands


def round_polygon(polygon: Sequence[Point], radius: float) -> List[PathCommand]:
    """
    Convert a polygon to path commands with rounded corners.

    With a radius of (about) zero the result is a sharp closed path with
    consecutive duplicate vertices collapsed. Otherwise the path starts at the
    exit tangent point of the last corner, so that closing the path runs
    straight into the first corner's rounding without a seam.

    Args:
        polygon: Closed polygon with at least 3 vertices
        radius: Requested corner radius

    Returns:
        Path commands, empty for degenerate input
    """
    if polygon is None or len(polygon) < 3:
        return []

    if radius < EPSILON:
        return _sharp_commands(polygon)

    pts = [Point(p[0], p[1]) for p in polygon]
    n = len(pts)
    corners = [corner_geometry(pts[i - 1], pts[i], pts[(i + 1) % n], radius) for i in range(n)]

    last_corner = corners[-1]
    start = last_corner.vertex if last_corner.sharp else last_corner.exit
    commands: List[PathCommand] = [MoveTo(start)]
    current = start

    for corner in corners:
        if corner.sharp:
            if not points_close(current, corner.vertex):
                commands.append(LineTo(corner.vertex))
                current = corner.vertex
            continue

        if not points_close(current, corner.entry):
            commands.append(LineTo(corner.entry))
        commands.append(QuadTo(corner.vertex, corner.exit))
        current = corner.exit

    # A sharp last corner is the start point; the close draws that edge
    last = commands[-1]
    if len(commands) > 1 and isinstance(last, LineTo) and points_close(last.point, start):
        commands.pop()

    if len(commands) < 3:
        return []
    commands.append(ClosePath())
    return commands


def command_points(commands: Sequence[PathCommand]) -> List[Point]:
    """Every coordinate referenced by *commands*, control points included."""
    points: List[Point] = []
    for cmd in commands:
        if isinstance(cmd, (MoveTo, LineTo)):
            points.append(cmd.point)
        elif isinstance(cmd, QuadTo):
            points.append(cmd.control)
            points.append(cmd.end)
    return points


def commands_to_path_data(commands: Sequence[PathCommand], decimals: int = 2) -> str:
    """Absolute SVG path data (M/L/Q/Z) for *commands*."""
    def fmt(p: Point) -> str:
        return f"{p.x:.{decimals}f} {p.y:.{decimals}f}"

    parts = []
    for cmd in commands:
        if isinstance(cmd, MoveTo):
            parts.append(f"M {fmt(cmd.point)}")
        elif isinstance(cmd, LineTo):
            parts.append(f"L {fmt(cmd.point)}")
        elif isinstance(cmd, QuadTo):
            parts.append(f"Q {fmt(cmd.control)} {fmt(cmd.end)}")
        elif isinstance(cmd, ClosePath):
            parts.append("Z")
        else:
            raise TypeError(f"Unknown path command: {cmd!r}")
    return " ".join(parts)
