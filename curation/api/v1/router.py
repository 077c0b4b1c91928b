from fastapi import APIRouter

from curation.api.v1.endpoints import agents, proposals, queue

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(proposals.router, prefix="/proposals", tags=["Proposals"])
api_router.include_router(agents.router, prefix="/agents", tags=["Agents"])
api_router.include_router(queue.router, prefix="/queue", tags=["Queue"])

__all__ = ["api_router"]
