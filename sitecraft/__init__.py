"""SiteCraft - AI website generation with in-browser preview"""

__version__ = '1.0.0'
