"""Helper utilities for the typing coach engine.

This package contains small utilities shared across the services.
"""

from .debug_util import DebugUtil  # noqa: F401
