from fastapi import APIRouter
from servicefinder.api.endpoints import providers

api_router = APIRouter()
api_router.include_router(providers.router, prefix="/providers", tags=["providers"])

@api_router.get("/health")
def health_check():
    return {"status": "ok"}
