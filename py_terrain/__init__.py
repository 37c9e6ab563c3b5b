"""
Procedural terrain heightmap and splat map synthesis.
"""

__version__ = "0.1.0"
