"""FastAPI application factory."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from voicespan.audio import AnalysisError

from .deps.auth import get_api_key
from .metrics import instrument_app
from .metrics import router as metrics_router
from .routers.analyze import router as analyze_router
from .schemas import HealthResponse
from .services.analysis_service import UndecodableAudio, UploadTooLarge
from .settings import APISettings, get_settings


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title=settings.app_name, version=settings.version)
    instrument_app(app)

    @app.exception_handler(AnalysisError)
    async def _analysis_error(_: Request, exc: AnalysisError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(UndecodableAudio)
    async def _undecodable(_: Request, exc: UndecodableAudio) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(UploadTooLarge)
    async def _too_large(_: Request, exc: UploadTooLarge) -> JSONResponse:
        return JSONResponse(status_code=413, content={"detail": str(exc)})

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz(
        _: str = Depends(get_api_key),
        current: APISettings = Depends(get_settings),
    ) -> HealthResponse:
        return HealthResponse(
            ok=True,
            version=current.version,
            timestamp=datetime.now(timezone.utc),
        )

    @app.get("/welcome")
    async def welcome() -> dict:
        return {"message": f"{settings.app_name} is running", "docs": "/docs"}

    app.include_router(analyze_router)
    app.include_router(metrics_router)
    return app
