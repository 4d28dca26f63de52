from fastapi import APIRouter
from app.api.v1 import admin, certificates, hospital_notifications, registrations

api_router = APIRouter()
api_router.include_router(hospital_notifications.router, prefix="/hospital-notifications", tags=["hospital-notifications"])
api_router.include_router(registrations.router, prefix="/registrations", tags=["registrations"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(certificates.router, prefix="/certificates", tags=["certificates"])
