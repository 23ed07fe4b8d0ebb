"""
Database Models

Feature models live next to their feature (app/features/*/models.py)
and register themselves on the shared Base.
"""

from app.models.base import Base

__all__ = [
    "Base",
]
