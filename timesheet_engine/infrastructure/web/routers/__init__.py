"""
API routers.
"""

from . import time_entries

__all__ = ["time_entries"]
