import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

import config
from db import create_db_and_tables, get_db_session, session_commit
from exceptions import (
    PaketyException,
    CartLineNotFoundException,
    InvalidQuantityException,
    ProductNotFoundException,
    PromotionTierNotFoundException,
    InvalidPromotionTierException,
)
from repositories.system_settings import SystemSettingsRepository
from utils.error_handler import user_message
from web.admin_router import admin_router
from web.api_router import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    # Startup
    await create_db_and_tables()
    async with get_db_session() as session:
        inserted = await SystemSettingsRepository.seed_defaults(session)
        await session_commit(session)
    if inserted:
        logging.info(f"[Startup] Seeded {inserted} default setting(s)")
    logging.info(f"[Startup] Pakety API ready ({config.RUNTIME_ENVIRONMENT.value})")

    yield

    # Shutdown
    logging.warning('Shutting down..')


app = FastAPI(title="Pakety", lifespan=lifespan)

if config.CORS_ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "X-User-Id", "X-Admin-Token"],
    )
    logging.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")
else:
    logging.debug("[Startup] CORS middleware disabled (no allowed origins configured)")

app.include_router(api_router)
app.include_router(admin_router)


# Health check endpoint (for Docker container monitoring)
@app.get("/health")
async def health_check():
    """Health check endpoint for Docker healthcheck."""
    return {"status": "healthy"}


_STATUS_BY_EXCEPTION = {
    CartLineNotFoundException: status.HTTP_404_NOT_FOUND,
    ProductNotFoundException: status.HTTP_404_NOT_FOUND,
    PromotionTierNotFoundException: status.HTTP_404_NOT_FOUND,
    InvalidQuantityException: status.HTTP_400_BAD_REQUEST,
    InvalidPromotionTierException: status.HTTP_400_BAD_REQUEST,
}


@app.exception_handler(PaketyException)
async def pakety_exception_handler(request: Request, exc: PaketyException):
    status_code = _STATUS_BY_EXCEPTION.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logging.warning(f"[API] {request.method} {request.url.path} -> {status_code}: {exc!r}")
    return JSONResponse(
        status_code=status_code,
        content={"message": exc.message, "userMessage": user_message(exc), "details": exc.details},
    )


@app.exception_handler(Exception)
async def exception_handler(request: Request, exc: Exception):
    logging.error(f"[API] Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"message": f"An error occurred: {str(exc)}"},
    )


def main() -> None:
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)
