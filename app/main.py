from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.core.database import session_manager, aget_db
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.progress import router as progress_router
from app.utils.schedulers.progressscheduler import ProgressScheduler

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
import logging
from contextlib import asynccontextmanager
from app.core.config import settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""

    app.state.progress_scheduler = None
    try:
        logger.info("🚀 Starting classroom progress service...")

        logger.info("🔌 Initializing database connection pool...")
        await session_manager.init()
        logger.info("✅ Database connection pool ready")

        if settings.SCHEDULER_ENABLED:
            logger.info("📅 Starting Progress Scheduler...")
            scheduler = ProgressScheduler()
            scheduler.start()
            app.state.progress_scheduler = scheduler
            logger.info("✅ Progress Scheduler started")

    except Exception as e:
        logger.critical(f"🔥 Application startup failed: {str(e)}")
        raise

    try:
        logger.info("🏁 Classroom progress service startup complete")
        yield
    finally:
        try:
            logger.info("🛑 Beginning application shutdown...")

            if app.state.progress_scheduler is not None:
                await app.state.progress_scheduler.stop()
                logger.info("✅ Scheduler stopped")

            logger.info("🔌 Closing database connections...")
            await session_manager.close()
            logger.info("✅ Database connections closed cleanly")
        except Exception as e:
            logger.error(f"⚠️ Error during shutdown: {str(e)}")
            raise
        finally:
            logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="Classroom Progress API",
    description="Team progress and risk scoring for the classroom collaboration platform",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


# CORS Configuration
if settings.ENVIRONMENT == "production":
    allowed_origins = [settings.FRONTEND_URL]
else:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logging.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()},
    )

@app.get("/", tags=["Health Check"])
@limiter.limit("30/minute")
async def health_check(request: Request, db: AsyncSession = Depends(aget_db)):
    scheduler = getattr(app.state, "progress_scheduler", None)
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "healthy",
            "service": "Classroom Progress API",
            "database": "connected",
            "schedulers_running": scheduler.running_jobs if scheduler else 0
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return {
            "status": "unhealthy",
            "service": "Classroom Progress API",
            "database": "disconnected",
            "error": str(e)
        }


app.include_router(progress_router, prefix="/api/v1", tags=["Progress"])

logger.info(f"✅ Loaded {len(app.routes)} routes")
