"""
Outer silhouette reconstruction from a soup of interior cells.

Interior cells tile their union without gaps, so an edge shared by two cells
is used twice and an edge on the silhouette is used exactly once. The
silhouette is rebuilt by counting edge usage and chaining the single-use
edges back into closed loops.

Cells are computed independently, so a shared edge rarely has bit-identical
endpoints in both cells. Edges are therefore identified by structural keys
built from coordinates rounded to a fixed number of decimals.
"""

from collections import Counter, defaultdict
from typing import Dict, List, NamedTuple, Sequence, Tuple

import structlog

from .geometry import Point, Polygon, points_close, signed_area

logger = structlog.get_logger()

# Decimal places kept in point and segment keys
KEY_PRECISION = 4

# Distance under which the trailing point of a path closes the loop
POINT_MATCH_TOLERANCE = 1e-4

PointKey = Tuple[float, float]
Segment = Tuple[Point, Point]


class SegmentKey(NamedTuple):
    """Order-independent identity of an edge."""
    start: PointKey
    end: PointKey


def point_key(point: Point, precision: int = KEY_PRECISION) -> PointKey:
    # Adding 0.0 folds -0.0 into 0.0
    return (round(point[0], precision) + 0.0, round(point[1], precision) + 0.0)


def segment_key(a: Point, b: Point, precision: int = KEY_PRECISION) -> SegmentKey:
    """Canonical key of edge a-b; segment_key(a, b) == segment_key(b, a)."""
    ka = point_key(a, precision)
    kb = point_key(b, precision)
    if kb < ka:
        ka, kb = kb, ka
    return SegmentKey(ka, kb)


def polygon_edges(polygon: Sequence[Point]) -> List[Segment]:
    """Consecutive vertex pairs of a closed polygon, wrapping last to first."""
    n = len(polygon)
    return [(polygon[i], polygon[(i + 1) % n]) for i in range(n)]


def count_segments(cells: Sequence[Sequence[Point]],
                   precision: int = KEY_PRECISION) -> Tuple[Counter, Dict[SegmentKey, Segment]]:
    """
    Count how many cells use each edge.

    Args:
        cells: Interior cell polygons
        precision: Decimal places used in the keys

    Returns:
        Tuple of (usage count per key, first-seen segment per key)
    """
    counts: Counter = Counter()
    representatives: Dict[SegmentKey, Segment] = {}

    for cell in cells:
        if cell is None or len(cell) < 3:
            continue
        for a, b in polygon_edges(cell):
            key = segment_key(a, b, precision)
            if key.start == key.end:
                continue  # zero-length edge
            counts[key] += 1
            representatives.setdefault(key, (a, b))

    return counts, representatives


def find_exterior_segments(cells: Sequence[Sequence[Point]],
                           precision: int = KEY_PRECISION) -> List[Segment]:
    """Edges used by exactly one cell."""
    counts, representatives = count_segments(cells, precision)

    overused = [key for key, count in counts.items() if count > 2]
    if overused:
        # Not possible in a planar tessellation; points to key collisions
        logger.warning("Edges used by more than two cells treated as internal",
                       count=len(overused), example=overused[0])

    exterior = [representatives[key] for key, count in counts.items() if count == 1]
    logger.debug("Exterior segments found", total=len(counts), exterior=len(exterior))
    return exterior


def reconstruct_polygons(segments: Sequence[Segment],
                         precision: int = KEY_PRECISION,
                         tolerance: float = POINT_MATCH_TOLERANCE) -> List[Polygon]:
    """
    Chain loose segments into closed loops.

    Each loop starts from an unconsumed seed segment and repeatedly consumes a
    segment touching its trailing point until it returns to its start. Dead
    ends are logged; an incomplete path is kept when it has at least three
    points, otherwise discarded. A global iteration cap guards against
    malformed adjacency.

    Args:
        segments: Undirected segments
        precision: Decimal places used to match endpoints
        tolerance: Closing distance between the trailing and first point

    Returns:
        Reconstructed polygons, each oriented counter-clockwise
    """
    adjacency: Dict[PointKey, List[int]] = defaultdict(list)
    for idx, (a, b) in enumerate(segments):
        adjacency[point_key(a, precision)].append(idx)
        adjacency[point_key(b, precision)].append(idx)

    consumed = [False] * len(segments)
    max_iterations = 2 * len(segments) + 10
    iterations = 0
    polygons: List[Polygon] = []

    for seed in range(len(segments)):
        if consumed[seed]:
            continue
        consumed[seed] = True
        path = [segments[seed][0], segments[seed][1]]
        closed = False

        while iterations < max_iterations:
            iterations += 1
            tail = path[-1]
            if len(path) > 2 and points_close(tail, path[0], tolerance):
                path.pop()
                closed = True
                break

            tail_key = point_key(tail, precision)
            next_idx = next((i for i in adjacency[tail_key] if not consumed[i]), None)
            if next_idx is None:
                logger.warning("Boundary path reached a dead end",
                               points=len(path), at=tail_key)
                break

            consumed[next_idx] = True
            start, end = segments[next_idx]
            path.append(end if point_key(start, precision) == tail_key else start)
        else:
            logger.warning("Boundary reconstruction hit the iteration cap",
                           cap=max_iterations, segments=len(segments))

        if len(path) < 3:
            logger.warning("Discarding incomplete boundary path", points=len(path))
            continue
        if not closed:
            logger.warning("Keeping open boundary path", points=len(path))

        if signed_area(path) < 0:
            path.reverse()
        polygons.append(path)

    return polygons


def extract_boundary(interior_cells: Sequence[Sequence[Point]],
                     precision: int = KEY_PRECISION) -> List[Polygon]:
    """Outer silhouette(s) of the union of the interior cells."""
    segments = find_exterior_segments(interior_cells, precision)
    if not segments:
        return []
    polygons = reconstruct_polygons(segments, precision)
    logger.debug("Boundary reconstructed", polygons=len(polygons), segments=len(segments))
    return polygons
