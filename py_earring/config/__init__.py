"""
Configuration modules for earring design.
"""

from .config import settings, Settings
from .design_settings import DesignParameters, SpreadSettings, SVGExportSettings

__all__ = ['settings', 'Settings', 'DesignParameters', 'SpreadSettings', 'SVGExportSettings']
