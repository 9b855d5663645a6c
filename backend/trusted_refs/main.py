# backend/trusted_refs/main.py
from __future__ import annotations

import logging
import os

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from trusted_refs.db import get_db, healthcheck
from trusted_refs.routers.references import router as references_router
from trusted_refs.routers.profiles import router as profiles_router
from trusted_refs.services.exceptions import ReferenceServiceError

logger = logging.getLogger(__name__)


def build_app() -> FastAPI:
    app = FastAPI(title="Trusted References API")

    # CORS (adjust origins as you need)
    frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[frontend_origin],
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )

    @app.exception_handler(ReferenceServiceError)
    def handle_reference_error(request: Request, exc: ReferenceServiceError):
        if exc.status_code >= 500:
            logger.error("[references] %s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": {"code": exc.code, "message": exc.message}},
        )

    # Health
    @app.get("/health")
    def health(db: Session = Depends(get_db)):
        return healthcheck(db)

    app.include_router(references_router)
    app.include_router(profiles_router)

    return app


app = build_app()
