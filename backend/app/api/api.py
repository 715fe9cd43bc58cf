from fastapi import APIRouter
from app.api.endpoints import donki, neo, feed, apod, analytics, ai

api_router = APIRouter()

api_router.include_router(donki.router, prefix="/donki", tags=["donki"])
api_router.include_router(neo.router, prefix="/neo", tags=["neo"])
api_router.include_router(feed.router, prefix="/feed", tags=["feed"])
api_router.include_router(apod.router, prefix="/apod", tags=["apod"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
api_router.include_router(ai.router, prefix="/ai", tags=["ai"])
