from fastapi import APIRouter

from evops.core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"ok": True, "service": settings.APP_NAME, "env": settings.APP_ENV}
