from fastapi import APIRouter

from evops.api.v1.admin import router as admin_router
from evops.api.v1.api_keys import router as api_keys_router
from evops.api.v1.audit import router as audit_router
from evops.api.v1.auth import router as auth_router
from evops.api.v1.budget import router as budget_router
from evops.api.v1.events import router as events_router
from evops.api.v1.external import router as external_router
from evops.api.v1.health import router as health_router
from evops.api.v1.partners import sponsors_router, vendors_router
from evops.api.v1.tickets import router as tickets_router

router = APIRouter()

# Public
router.include_router(health_router)
router.include_router(auth_router)

# Protected (auth enforced per-endpoint or at router level)
router.include_router(events_router)
router.include_router(budget_router)
router.include_router(tickets_router)
router.include_router(vendors_router)
router.include_router(sponsors_router)
router.include_router(api_keys_router)
router.include_router(audit_router)
router.include_router(admin_router)

# API-key authenticated
router.include_router(external_router)
