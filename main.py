import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.core.logging_config import setup_logging
from app.api.v1.api import api_router
from app.db.base import utcnow
from app.db.init_db import init_db
from app.middleware.logging import LoggingMiddleware
from app.services.notification.notification_hub import notification_hub

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("🚀 Starting Stock Taking Service...")
    await init_db()
    yield
    logger.info(
        f"🛑 Shutting down, {len(notification_hub.connected_user_ids)} users still connected"
    )

# Create FastAPI app
app_config = {
    "title": "Stock Taking Service",
    "description": "Location stock counts with live notifications for admins and workers",
    "version": "1.0.0",
    "docs_url": "/api/docs",
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(LoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS
)

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": "Welcome to the Stock Taking Service!",
        "status": "active",
        "version": "1.0.0",
        "docs": "/api/docs"
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "components": {
            "database": "connected",
            "live_connections": len(notification_hub.connected_user_ids)
        }
    }

def run_http():
    """Run HTTP server on port 9106"""
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=9106,
        reload=False
    )

if __name__ == "__main__":
    run_http()
