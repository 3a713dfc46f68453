"""Tests for geometric primitives and the polygon offset engine."""

import math

import numpy as np
import pytest
from shapely.geometry import Polygon as ShapelyPolygon

from py_earring.core.geometry import (
    GeometryError, Point, bounding_box, bounding_box_area, circle_to_polygon,
    dedupe_consecutive, is_point_inside_polygon, offset_polygon, polygon_centroid,
    reverse_winding, signed_area
)


def regular_polygon(n, radius=10.0, center=(3.0, -2.0)):
    return [Point(center[0] + radius * math.cos(2 * math.pi * i / n),
                  center[1] + radius * math.sin(2 * math.pi * i / n)) for i in range(n)]


class TestCentroid:
    """Test area-weighted centroids."""

    def test_square(self, square):
        c = polygon_centroid(square)
        assert c.x == pytest.approx(5.0)
        assert c.y == pytest.approx(5.0)

    def test_triangle(self):
        c = polygon_centroid([Point(0, 0), Point(6, 0), Point(3, 6)])
        assert c.x == pytest.approx(3.0)
        assert c.y == pytest.approx(2.0)

    def test_winding_does_not_matter(self, square):
        assert polygon_centroid(reverse_winding(square)) == pytest.approx(polygon_centroid(square))

    def test_degenerate_falls_back_to_mean(self):
        c = polygon_centroid([Point(0, 0), Point(1, 1), Point(2, 2)])
        assert c.x == pytest.approx(1.0)
        assert c.y == pytest.approx(1.0)

    def test_empty(self):
        assert polygon_centroid([]) is None


class TestPointInPolygon:
    """Test ray casting containment."""

    def test_inside_and_outside(self, square):
        assert is_point_inside_polygon(Point(5, 5), square)
        assert not is_point_inside_polygon(Point(15, 5), square)
        assert not is_point_inside_polygon(Point(-1, -1), square)

    def test_concave(self):
        l_shape = [Point(0, 0), Point(10, 0), Point(10, 4), Point(4, 4), Point(4, 10), Point(0, 10)]
        assert is_point_inside_polygon(Point(2, 8), l_shape)
        assert not is_point_inside_polygon(Point(8, 8), l_shape)

    def test_too_few_vertices(self):
        assert not is_point_inside_polygon(Point(0, 0), [Point(-1, -1), Point(1, 1)])
        assert not is_point_inside_polygon(Point(0, 0), None)

    def test_shared_edge_belongs_to_one_cell(self):
        left = [Point(0, 0), Point(1, 0), Point(1, 1), Point(0, 1)]
        right = [Point(1, 0), Point(2, 0), Point(2, 1), Point(1, 1)]
        on_edge = Point(1.0, 0.5)
        hits = [is_point_inside_polygon(on_edge, cell) for cell in (left, right)]
        assert hits.count(True) == 1


class TestOffsetPolygon:
    """Test radial polygon offsetting."""

    def test_shrink_moves_vertices_toward_centroid(self, square):
        shrunk = offset_polygon(square, -1.0)
        assert len(shrunk) == 4
        step = 1.0 / math.sqrt(2)
        np.testing.assert_allclose(shrunk[0], (step, step))
        np.testing.assert_allclose(shrunk[2], (10 - step, 10 - step))

    def test_grow(self, square):
        grown = offset_polygon(square, 1.0)
        step = 1.0 / math.sqrt(2)
        np.testing.assert_allclose(grown[0], (-step, -step))
        assert abs(signed_area(grown)) > abs(signed_area(square))

    def test_shrink_is_clamped_before_centroid(self, square):
        shrunk = offset_polygon(square, -100.0)
        # 99% of the way to the centroid, never across it
        np.testing.assert_allclose(shrunk[0], (4.95, 4.95))
        np.testing.assert_allclose(shrunk[2], (5.05, 5.05))
        assert signed_area(shrunk) > 0

    def test_zero_distance_is_identity(self, square):
        np.testing.assert_allclose(offset_polygon(square, 0.0), square)

    def test_small_distance_is_small_perturbation(self, square):
        result = offset_polygon(square, -1e-9)
        np.testing.assert_allclose(result, square, atol=1e-8)

    def test_degenerate_input(self):
        assert offset_polygon([Point(0, 0), Point(1, 1)], -1.0) is None
        assert offset_polygon([], -1.0) is None
        assert offset_polygon(None, -1.0) is None

    def test_vertex_on_centroid_is_kept(self):
        # Zero area: the centroid is the mean (1, 1), which is also a vertex
        polygon = [Point(0, 0), Point(1, 1), Point(2, 2)]
        result = offset_polygon(polygon, -0.5)
        assert result[1] == Point(1, 1)

    @pytest.mark.parametrize("n", [3, 5, 6, 9])
    @pytest.mark.parametrize("fraction", [0.05, 0.3, 0.9, 1.5])
    def test_shrunk_polygon_strictly_inside(self, n, fraction):
        polygon = regular_polygon(n)
        centroid = polygon_centroid(polygon)
        min_dist = min(math.hypot(p.x - centroid.x, p.y - centroid.y) for p in polygon)
        d = fraction * min_dist
        assert 0 < d < 2 * min_dist

        shrunk = offset_polygon(polygon, -d)
        assert len(shrunk) == len(polygon)
        outer = ShapelyPolygon(polygon)
        inner = ShapelyPolygon(shrunk)
        assert inner.is_valid
        assert outer.contains(inner)


class TestCircleAndWinding:
    """Test hole circle helpers."""

    def test_circle_points(self):
        circle = circle_to_polygon(Point(5, 5), 2.0, 24)
        assert len(circle) == 24
        for p in circle:
            assert math.hypot(p.x - 5, p.y - 5) == pytest.approx(2.0)
        assert signed_area(circle) > 0

    def test_invalid_circle(self):
        with pytest.raises(GeometryError):
            circle_to_polygon(Point(0, 0), 0.0)
        with pytest.raises(GeometryError):
            circle_to_polygon(Point(0, 0), 1.0, segments=2)

    def test_reverse_winding(self, square):
        reversed_square = reverse_winding(square)
        assert signed_area(reversed_square) == pytest.approx(-signed_area(square))
        assert square[0] == Point(0, 0)  # input untouched


class TestHelpers:
    """Test bounding boxes and de-duplication."""

    def test_bounding_box(self, square):
        assert bounding_box(square) == (0.0, 0.0, 10.0, 10.0)
        assert bounding_box([]) is None
        assert bounding_box_area(square) == pytest.approx(100.0)

    def test_dedupe_consecutive(self):
        cleaned = dedupe_consecutive([Point(0, 0), Point(0, 1e-9), Point(1, 0), Point(1, 1), Point(0, 0)])
        assert cleaned == [Point(0, 0), Point(1, 0), Point(1, 1)]
