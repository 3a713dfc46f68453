"""Circular mounting hole placement."""

from typing import NamedTuple, Optional, Sequence

import structlog

from .geometry import (GeometryError, Point, Polygon, circle_to_polygon,
                       is_point_inside_polygon, reverse_winding)

logger = structlog.get_logger()

DEFAULT_HOLE_SEGMENTS = 24


class Hole(NamedTuple):
    """A requested circular cut-out."""
    center: Point
    diameter: float


def build_hole_polygon(hole: Hole, interior_cells: Sequence[Polygon],
                       segments: int = DEFAULT_HOLE_SEGMENTS) -> Optional[Polygon]:
    """
    Clockwise circle polygon for *hole* if its centre lies in an interior cell.

    The test runs against the original, unshrunk cells so the gap width can
    never exclude a hole close to a cell edge. Cells are tried in order and
    the first match wins, so at most one hole polygon is produced.

    Args:
        hole: Hole centre and diameter
        interior_cells: Unshrunk interior cell polygons
        segments: Number of circle segments

    Returns:
        Reverse-wound circle polygon, or None when the hole is outside the design
    """
    if hole.diameter <= 0:
        raise GeometryError(f"Hole diameter must be positive: d={hole.diameter}")

    for index, cell in enumerate(interior_cells):
        if is_point_inside_polygon(hole.center, cell):
            circle = circle_to_polygon(hole.center, hole.diameter / 2.0, segments)
            logger.debug("Hole placed", cell=index, center=tuple(hole.center), diameter=hole.diameter)
            return reverse_winding(circle)

    logger.debug("Hole outside every interior cell", center=tuple(hole.center))
    return None
