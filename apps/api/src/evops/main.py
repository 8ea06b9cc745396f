from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from evops.api.v1.router import router as v1_router
from evops.core.config import settings
from evops.core.errors import install_error_handlers
from evops.core.logging import configure_logging

configure_logging()

app = FastAPI(title=settings.APP_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_error_handlers(app)

app.include_router(v1_router, prefix="/api/v1")
