from __future__ import annotations  # FastAPI server exposing adaptive mock interviews

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import router
from api.schemas import HealthResp
from config import gateway_config_from_settings
from config.settings import Settings, settings as default_settings
from interview_session.errors import GenerationFailed, InterviewError
from interview_session.interview_session import InterviewSessionService
from llm_gateway import Gateway
from observability import configure_logging
from storage.sessions import SessionStore


logger = logging.getLogger(__name__)


def build_service(cfg: Settings) -> InterviewSessionService:  # Wire store and gateway from settings
    store = SessionStore(Path(cfg.DB_PATH))
    gateway = Gateway(gateway_config_from_settings(cfg))
    return InterviewSessionService(store, gateway, settings=cfg)


def create_app(service: Optional[InterviewSessionService] = None, cfg: Optional[Settings] = None) -> FastAPI:
    cfg = cfg or default_settings
    configure_logging(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "interview_service", None) is None:
            app.state.interview_service = build_service(cfg)
            # Probe the model server once at startup
            app.state.interview_service.gateway.probe()
        yield

    app = FastAPI(title="Mock Interview API", lifespan=lifespan)
    app.state.interview_service = service
    origins = [origin.strip() for origin in cfg.CORS_ORIGINS.split(",") if origin.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InterviewError)
    async def interview_error_handler(request: Request, exc: InterviewError) -> JSONResponse:
        message = exc.message
        if isinstance(exc, GenerationFailed) and not cfg.EXPOSE_ERROR_DETAILS:
            message = GenerationFailed.public_message
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s %s", request.method, request.url.path, exc.kind, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.kind, "message": message},
        )

    @app.get("/health", response_model=HealthResp)
    def health(request: Request) -> HealthResp:
        current = request.app.state.interview_service
        available = bool(current and current.gateway.probe())
        return HealthResp(status="ok", model_server=available)

    app.include_router(router)
    return app


app = create_app()
