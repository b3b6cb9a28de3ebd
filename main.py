"""
FastAPI application entry point
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from api.routes import payments as payments_routes
from api.routes import shipping as shipping_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.settings import payment_settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from infrastructure.external.shipping import shutdown_cdek_client


configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    if not payment_settings.yookassa.is_configured:
        logger.warning(
            "yookassa_not_configured",
            message="YOOKASSA__SHOP_ID / YOOKASSA__SECRET_KEY not set, payment calls will fail",
        )
    if not (settings.cdek.client_id and settings.cdek.client_secret):
        logger.warning(
            "cdek_not_configured",
            message="CDEK__CLIENT_ID / CDEK__CLIENT_SECRET not set, shipping routes will return 503",
        )
    logger.info("application_started", environment=settings.ENVIRONMENT)

    yield

    await shutdown_cdek_client()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="YooKassa payment bridge and CDEK shipping for the storefront",
)

# Middleware runs bottom-up: RequestID first so the logger sees request_id
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


app.include_router(payments_routes.router, prefix="/api/v1")
app.include_router(shipping_routes.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc"
        },
        message="Welcome"
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check"""
    return success_response(data={"status": "healthy"}, message="OK")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
