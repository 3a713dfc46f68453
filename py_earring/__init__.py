"""Voronoi earring designer: site placement to laser-cuttable outlines."""

__version__ = "0.1.0"
