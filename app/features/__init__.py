"""
Feature modules for the hike tracker.

Each feature is a self-contained module with:
- models.py - SQLAlchemy models
- schemas.py - Pydantic schemas
- repository.py - Data access
- service-level modules for the business logic
"""
