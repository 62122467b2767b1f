"""FastAPI application factory"""

import logging
import sentry_sdk
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.error import ClientError, client_error_handler
from src.api.routes import credit, payments

logger = logging.getLogger(__name__)


def create_app(config) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if config.ENABLE_SENTRY and config.DSN_SENTRY:
        sentry_sdk.init(
            dsn=config.DSN_SENTRY,
            environment=config.SENTRY_ENVIRONMENT,
            traces_sample_rate=0.1,
        )
        logger.info(f"Sentry enabled for environment {config.SENTRY_ENVIRONMENT}")

    app = FastAPI(
        title="Company Credit Service",
        description="Company credit ledger with payment capture and refunds",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ClientError, client_error_handler)

    api_router = APIRouter(prefix=config.API_PREFIX)
    api_router.include_router(credit.router)
    api_router.include_router(payments.router)
    api_router.include_router(payments.refunds_router)
    api_router.include_router(payments.users_router)
    app.include_router(api_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok"})

    return app
