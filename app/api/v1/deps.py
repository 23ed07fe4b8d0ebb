"""
Shared route dependencies.
"""

from fastapi import HTTPException, Request

from app.features.tracking import SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    """Session registry created by the application lifespan."""
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Tracking service not initialized")
    return registry
