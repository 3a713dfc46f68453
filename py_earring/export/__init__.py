"""
Vector export of earring designs.
"""

from .svg import generate_svg_string, is_diagnostic, NO_GEOMETRY_MESSAGE, NO_BOUNDS_MESSAGE

__all__ = ['generate_svg_string', 'is_diagnostic', 'NO_GEOMETRY_MESSAGE', 'NO_BOUNDS_MESSAGE']
