"""Health check endpoint."""

from fastapi import APIRouter

from ...api.dependencies import SessionDep


router = APIRouter(prefix="/api/v1", tags=["Health"])


@router.get("/health")
async def health_check(session: SessionDep) -> dict:
    """
    Health check endpoint.

    Returns:
        Health status and session statistics
    """
    return {
        "status": "healthy",
        "service": "FF&E Budget Service",
        "version": "0.1.0",
        "session": session.get_stats(),
    }
