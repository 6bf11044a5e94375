"""
Adapters module - I/O surfaces.

Adapters are thin wrappers over the story and audio packages.
They hold no narrative or mixing logic - only I/O.
"""

from storygraph.adapters.cli import main

__all__ = ["main"]
