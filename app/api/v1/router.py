"""API v1 router aggregator."""

from fastapi import APIRouter

from app.api.v1.auth.routes import router as auth_router
from app.api.v1.content.routes import router as content_router
from app.api.v1.experts.routes import router as experts_router
from app.api.v1.generation.routes import router as generation_router
from app.api.v1.monitoring.routes import router as monitoring_router
from app.api.v1.research.routes import router as research_router
from app.api.v1.topics.routes import router as topics_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(experts_router, prefix="/experts", tags=["Experts"])
api_router.include_router(topics_router, prefix="/topics", tags=["Topics"])
api_router.include_router(content_router, prefix="/content", tags=["Content"])
api_router.include_router(generation_router, prefix="/generation", tags=["Generation"])
api_router.include_router(research_router, prefix="/research", tags=["Research"])
api_router.include_router(monitoring_router, prefix="/monitoring", tags=["Monitoring"])
