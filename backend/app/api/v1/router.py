from fastapi import APIRouter
from app.api.v1.endpoints import auth, tech_messages, health

api_router = APIRouter()

# Liveness / readiness probes
api_router.include_router(health.router)

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(tech_messages.router)
