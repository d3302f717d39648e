"""
PII Masking Engine - Main API
Masking policy, reveal and audit for contact emails and phone numbers
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import structlog

from masking_engine.api.routes import mask, policy, account_settings, audit
from masking_engine.utils.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting PII Masking Engine", audit_sink=settings.AUDIT_SINK)
    yield
    logger.info("Shutting down PII Masking Engine")


app = FastAPI(
    title=settings.APP_NAME,
    description="Masking policy and transformation engine for contact PII",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(mask.router, prefix="/mask", tags=["Data Masking"])
app.include_router(policy.router, prefix="/policy", tags=["Masking Policy"])
app.include_router(account_settings.router, prefix="/settings", tags=["Masking Settings"])
app.include_router(audit.router, prefix="/audit", tags=["Audit"])


@app.get("/")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": "1.0.0",
        "status": "operational"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
