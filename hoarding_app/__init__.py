"""Hoarding management backend package.

Having this file ensures the 'hoarding_app' directory is recognized as a
standard Python package during test discovery and installation.
"""

__all__: list[str] = []
