"""
Core earring geometry functionality.
"""

from .geometry import Point, Polygon, GeometryError, offset_polygon, polygon_centroid, is_point_inside_polygon
from .tessellation import ClipBounds, ScipyVoronoiTessellator, Tessellator, TessellationResult, compute_clip_bounds
from .classification import classify_cells, CellClassification
from .boundary import extract_boundary, segment_key
from .rounding import MoveTo, LineTo, QuadTo, ClosePath, PathCommand, round_polygon
from .spreading import spread_points, SpreadResult
from .holes import Hole, build_hole_polygon
from .pipeline import DesignSession, GeometryResult, InteractionMode, PolygonRole, generate_geometry

__all__ = ['Point', 'Polygon', 'GeometryError', 'offset_polygon', 'polygon_centroid', 'is_point_inside_polygon',
           'ClipBounds', 'ScipyVoronoiTessellator', 'Tessellator', 'TessellationResult', 'compute_clip_bounds',
           'classify_cells', 'CellClassification', 'extract_boundary', 'segment_key',
           'MoveTo', 'LineTo', 'QuadTo', 'ClosePath', 'PathCommand', 'round_polygon',
           'spread_points', 'SpreadResult', 'Hole', 'build_hole_polygon',
           'DesignSession', 'GeometryResult', 'InteractionMode', 'PolygonRole', 'generate_geometry']
