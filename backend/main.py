import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from api.routes import router as api_router
from config.settings import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Job Pipeline API",
    description="Cron and admin endpoints for job ingestion and enrichment",
    version="1.0.0",
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(api_router, prefix="/api")

# Startup configuration report: every missing optional key only degrades a feature
for key, consequence in settings.missing_optional_keys().items():
    logger.warning(f"{key} not set: {consequence}")


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Lambda handler
handler = Mangum(app, lifespan="off")
