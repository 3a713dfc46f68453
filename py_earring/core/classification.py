"""Split clipped cells into interior cells and exterior (shadow) cells."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import structlog

from .geometry import EPSILON, Point, Polygon
from .tessellation import ClipBounds

logger = structlog.get_logger()

# The clipping step carries its own numerical slop, so this is much looser than EPSILON
BOUNDARY_TOLERANCE = 100 * EPSILON


@dataclass
class CellClassification:
    """Result of classifying clipped cells.

    ``interior_indices[k]`` is the site index of ``interior[k]``; likewise for
    the exterior lists. Sites without a cell appear in neither.
    """
    interior: List[Polygon] = field(default_factory=list)
    interior_indices: List[int] = field(default_factory=list)
    exterior: List[Polygon] = field(default_factory=list)
    exterior_indices: List[int] = field(default_factory=list)


def is_point_on_bounds(point: Point, bounds: ClipBounds, tolerance: float = BOUNDARY_TOLERANCE) -> bool:
    """True when *point* lies within *tolerance* of any edge of the rectangle."""
    return (abs(point[0] - bounds.xmin) < tolerance or
            abs(point[0] - bounds.xmax) < tolerance or
            abs(point[1] - bounds.ymin) < tolerance or
            abs(point[1] - bounds.ymax) < tolerance)


def is_cell_interior(cell: Sequence[Point], bounds: ClipBounds, tolerance: float = BOUNDARY_TOLERANCE) -> bool:
    """A cell is interior iff none of its vertices touches the clip rectangle."""
    return not any(is_point_on_bounds(p, bounds, tolerance) for p in cell)


def classify_cells(cells: Sequence[Optional[Polygon]], bounds: ClipBounds,
                   tolerance: float = BOUNDARY_TOLERANCE) -> CellClassification:
    """
    Classify every site's clipped cell as interior or exterior.

    Args:
        cells: One clipped cell (or None) per site
        bounds: The clip rectangle used by the tessellation
        tolerance: Distance under which a vertex counts as touching the rectangle

    Returns:
        Disjoint interior and exterior cell lists, in site order
    """
    result = CellClassification()
    for i, cell in enumerate(cells):
        if cell is None or len(cell) < 3:
            continue
        if is_cell_interior(cell, bounds, tolerance):
            result.interior.append(list(cell))
            result.interior_indices.append(i)
        else:
            result.exterior.append(list(cell))
            result.exterior_indices.append(i)

    logger.debug("Cells classified", interior=len(result.interior), exterior=len(result.exterior))
    return result
