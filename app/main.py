"""
Tablebook - Restaurant reservation API
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from app.config import settings
from app.api import health, reservations, tables
from app.api.errors import register_exception_handlers


def configure_logging(level: str = settings.log_level) -> None:
    """JSON logs through the stdlib root logger at `level`"""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting Tablebook API",
        version=health.VERSION,
        timezone=settings.site_timezone,
        booking_window_days=settings.booking_window_days,
        auto_confirm=settings.auto_confirm_reservations,
    )
    yield
    from app.database import engine

    await engine.dispose()
    logger.info("Shutting down Tablebook API")


app = FastAPI(
    title="Tablebook",
    description="Table reservations, allocation and availability for restaurants",
    version=health.VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(reservations.router, prefix="/reservations", tags=["Reservations"])
app.include_router(tables.router, prefix="/tables", tags=["Tables"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
