"""Master API router mounted at /api/v1."""

from fastapi import APIRouter

from docspace.api.routes import documents, health, organizations, uploads, users, workspaces

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(workspaces.router)
api_router.include_router(uploads.router)
api_router.include_router(documents.router)
api_router.include_router(users.router)
api_router.include_router(organizations.router)
