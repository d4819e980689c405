from fastapi import APIRouter
from app.api.routes import health, webhooks

api_router = APIRouter()

# Include all route modules
api_router.include_router(health.router)
api_router.include_router(webhooks.router)
