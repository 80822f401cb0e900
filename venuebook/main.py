import time
import asyncio
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from venuebook.core.config import settings
from venuebook.core.logging import setup_logging, request_id_ctx
from venuebook.core.errors import DomainError
from venuebook.core.db import init_models, SessionLocal
from venuebook.api.router import api_router
from venuebook.modules.events.outbox import run_outbox_relay
from venuebook.platform.provider_registry import registry

setup_logging()
app = FastAPI(title=settings.APP_NAME)

logger = logging.getLogger(__name__)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id_ctx.set(request.headers.get("x-request-id", "-"))
    start_time = time.time()

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    logger.info(
        f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.2f}ms"
    )
    return response

@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    # Conflict is the routine outcome of losing a race; clients re-fetch slots and retry
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "An internal server error occurred."},
    )

@app.on_event("startup")
async def on_startup():
    await init_models()
    app.state.outbox_task = asyncio.create_task(run_outbox_relay(SessionLocal, registry.event_bus()))

@app.on_event("shutdown")
async def on_shutdown():
    task = getattr(app.state, "outbox_task", None)
    if task:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
    bus = registry.event_bus()
    if hasattr(bus, "close"):
        await bus.close()


app.include_router(api_router, prefix=settings.API_PREFIX)
