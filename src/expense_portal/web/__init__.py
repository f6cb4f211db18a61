"""
Server-rendered web client.
"""
from .app import create_app

__all__ = ["create_app"]
