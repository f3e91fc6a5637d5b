"""
Root router: public discovery and health endpoints.

  GET /        Where the API documentation lives
  GET /health  Liveness probe for deployments
"""

from fastapi import APIRouter, Request

from colis.config import settings

router = APIRouter()


@router.get("/", summary="API discovery")
async def get_home(request: Request):
    """Return the absolute URL of the interactive API documentation."""
    base_url = str(request.base_url).rstrip("/")
    return {"documentation_url": f"{base_url}{settings.API_DOCUMENTATION_ROUTE}"}


@router.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
