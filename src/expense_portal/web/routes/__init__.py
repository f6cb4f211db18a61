"""
Web routes
"""
from . import auth, dashboard

__all__ = ["auth", "dashboard"]
