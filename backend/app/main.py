from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from app.config.settings import settings
from app.core.middleware import verify_token_middleware
from app.db.base import get_engine
from app.db.base import get_session_factory

# -------------------------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application start-up & shutdown hooks."""
    # ------------------------------------------------------------------ start‑up -----
    logger.info("Application startup …")

    engine = None
    try:
        logger.info("Initializing Database Engine...")
        engine = await get_engine(str(settings.database_url))
        app.state.engine = engine
        logger.info("DB engine ready and stored in app state.")

        session_factory = await get_session_factory(engine)
        app.state.session_factory = session_factory
        logger.info("DB session factory ready.")
    except Exception as e:
        logger.critical(f"CRITICAL ERROR DURING STARTUP INITIALIZATIONS: {e}", exc_info=True)
        if engine:
            await engine.dispose()
        raise

    # ------------------------------------------------ give control back
    yield

    # ------------------------------------------------ shutdown --------
    logger.info("Application shutdown …")
    try:
        await engine.dispose()
        logger.info("DB engine disposed")
    except Exception:
        logger.exception("Error disposing DB engine")

    logger.info("Shutdown complete")


# -------------------------------------------------------------------------------------
# FastAPI application instance
# -------------------------------------------------------------------------------------
app = FastAPI(title="MindCare Hub API", lifespan=lifespan)

# CORS -------------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(o) for o in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Token claims on request.state.user ------------------------------------------------
app.middleware("http")(verify_token_middleware)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ------------------------------------------------------------------- routes ---------
from app.routes.auth.router import router as auth_router  # noqa: E402  (after app creation)
from app.routes.appointment.router import router as appointment_router  # noqa: E402
from app.routes.providers.router import router as providers_router  # noqa: E402
from app.routes.messages.router import router as messages_router  # noqa: E402
from app.routes.mood.router import router as mood_router  # noqa: E402
from app.routes.community.router import router as community_router  # noqa: E402
from app.routes.resources.router import router as resources_router  # noqa: E402
from app.routes.counselor.router import router as counselor_router  # noqa: E402
from app.routes.patients.router import router as patients_router  # noqa: E402
from app.routes.telepsychiatry.router import router as telepsychiatry_router  # noqa: E402
from app.routes.admin.router import router as admin_router  # noqa: E402
from app.routes.analytics.router import router as analytics_router  # noqa: E402
from app.routes.health.router import router as health_router  # noqa: E402

for router in (
    auth_router,
    appointment_router,
    providers_router,
    messages_router,
    mood_router,
    community_router,
    resources_router,
    counselor_router,
    patients_router,
    telepsychiatry_router,
    admin_router,
    analytics_router,
    health_router,
):
    app.include_router(router, prefix="/api")
