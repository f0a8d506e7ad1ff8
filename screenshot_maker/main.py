import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from screenshot_maker.config import settings
from screenshot_maker.models.requests import validation_issues
from screenshot_maker.models.responses import HealthResponse
from screenshot_maker.routes.pages import router as pages_router
from screenshot_maker.routes.screenshot import router as screenshot_router
from screenshot_maker.services.browser_session import browser_session

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[lambda: settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # the browser is launched lazily by the first screenshot request
    yield
    logger.info("Shutting down browser session...")
    await browser_session.stop()


app = FastAPI(title="Screenshot Maker", lifespan=lifespan)

# Rate limiter
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests. Please try again later."},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid query parameters", "error": validation_issues(exc)},
    )


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)

# Routes
app.include_router(screenshot_router, prefix="/api")
app.include_router(pages_router)


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return {"status": "ok", "service": "screenshot-maker"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
