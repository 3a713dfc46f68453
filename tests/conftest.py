"""Shared fixtures for the earring geometry tests."""

import math

import pytest

from py_earring.core.geometry import Point


def ring_sites(n: int = 10, radius: float = 40.0, center=(50.0, 50.0)):
    """Sites on a circle; their cells are all cut by the clip rectangle."""
    return [Point(center[0] + radius * math.cos(2 * math.pi * i / n),
                  center[1] + radius * math.sin(2 * math.pi * i / n))
            for i in range(n)]


INNER_SITES = [Point(45.0, 45.0), Point(55.0, 47.0), Point(50.0, 56.0),
               Point(42.0, 55.0), Point(58.0, 55.0)]

TRIANGLE_SITES = [Point(40.0, 40.0), Point(62.0, 42.0), Point(48.0, 58.0)]


@pytest.fixture
def ring():
    return ring_sites()


@pytest.fixture
def clustered_sites():
    """Ten ring sites around five inner sites with bounded cells."""
    return ring_sites() + list(INNER_SITES)


@pytest.fixture
def triangle_sites():
    """Ring sites around a scalene triangle of sites."""
    return ring_sites() + list(TRIANGLE_SITES)


@pytest.fixture
def square():
    return [Point(0.0, 0.0), Point(10.0, 0.0), Point(10.0, 10.0), Point(0.0, 10.0)]
