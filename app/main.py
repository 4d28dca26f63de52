import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.exception_handlers import register_exception_handlers
from app.api.v1 import api_router
from app.core.config import settings
from app.core.database import Base, engine
from app import models  # noqa: F401  (registers every table on Base.metadata)

logging.basicConfig(level=settings.LOG_LEVEL)

# Create database tables
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Birth registration workflow: hospital notifications, parent registrations, admin review and certificates",
    version="1.0.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

# Set up CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API router
app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
async def root():
    return {
        "message": "Birth Registry API",
        "version": "1.0.0",
        "docs": "/docs",
        "api": settings.API_V1_STR
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
