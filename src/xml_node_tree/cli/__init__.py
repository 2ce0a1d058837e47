"""Command-line interface for xml-node-tree.

This module provides the ``format``, ``check`` and ``fetch`` commands.
"""

from .main import main

__all__ = ["main"]
