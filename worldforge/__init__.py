"""
worldforge - cascading random tables for tabletop worldbuilding.

Weighted lookup tables that expand, through dice rolls and recursive
cascades, into short descriptive phrases.
"""

__version__ = "0.1.0"
