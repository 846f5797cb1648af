"""
SkillPath learning service: FastAPI application factory.

Run with: uvicorn skillpath.main:app
"""

import sys
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skillpath.clients.content_store import ContentStore
from skillpath.clients.llm_client import LLMClient
from skillpath.clients.memory_store import InMemoryContentStore
from skillpath.clients.supabase_client import SupabaseContentStore, create_supabase
from skillpath.clients.youtube_client import YouTubeSearchClient
from skillpath.config import Settings
from skillpath.routes.learning_routes import router as learning_router
from skillpath.services import LearningServices, build_learning_services
from skillpath.utils.exceptions import SkillPathError
from skillpath.utils.rate_limiter import RequestRateLimiter

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_store(settings: Settings) -> ContentStore:
    if settings.store_backend == "memory":
        logger.warning("Using in-memory content store; data is lost on restart")
        return InMemoryContentStore()
    return SupabaseContentStore(create_supabase(settings.supabase_url, settings.supabase_key))


def create_app(services: Optional[LearningServices] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the app. Pre-built services (tests) are used as-is; otherwise
    every handle is constructed from settings when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is not None:
            app.state.learning_services = services
            yield
            return

        active = settings or Settings.from_env()
        configure_logging(active.log_level)

        store = build_store(active)
        generator = LLMClient(
            model_key=active.llm_model,
            rate_limiter=RequestRateLimiter(active.rate_limit_per_minute, active.rate_limit_per_day),
        )
        video_search = YouTubeSearchClient(active.youtube_api_key)
        if not active.youtube_api_key:
            logger.warning("YOUTUBE_API_KEY not set; chapter videos will fall back to search links")

        app.state.learning_services = build_learning_services(store, generator, video_search, active)
        logger.info(f"Learning services ready (store={active.store_backend}, model={active.llm_model})")
        try:
            yield
        finally:
            await video_search.aclose()

    app = FastAPI(title="SkillPath Learning Service", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SkillPathError)
    async def skillpath_exception_handler(request: Request, exc: SkillPathError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.error_code} {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message, "errorCode": exc.error_code},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        message = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', []))}: {err.get('msg', '')}" for err in errors
        ) or "Invalid request"
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": message, "errorCode": "INVALID_INPUT"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error", "errorCode": "INTERNAL_ERROR"},
        )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(learning_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
