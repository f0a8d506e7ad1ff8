import logging
from urllib.parse import quote

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from screenshot_maker.config import settings
from screenshot_maker.middleware.security import is_authorized
from screenshot_maker.models.requests import IMAGE_TYPES, CacheInvalidationQuery, ScreenshotOptions, ScreenshotQuery
from screenshot_maker.models.responses import (
    CacheInvalidationResponse,
    ErrorResponse,
    MessageResponse,
    ValidationErrorResponse,
)
from screenshot_maker.services.cache_service import screenshot_cache
from screenshot_maker.services.screenshot_service import RenderFailure, render_screenshot

logger = logging.getLogger(__name__)
router = APIRouter()

RENDER_ERROR_MESSAGE = "Failed to generate screenshot"

# Callers never learn why a render failed; the cause is only logged.
FAILURE_STATUS = {
    RenderFailure.BROWSER: 500,
    RenderFailure.TIMEOUT: 500,
    RenderFailure.PAGE: 500,
    RenderFailure.ENCODE: 500,
}


def failure_status(reason: RenderFailure) -> int:
    return FAILURE_STATUS[reason]


def unauthorized() -> JSONResponse:
    return JSONResponse(status_code=401, content={"message": "Unauthorized"})


def content_disposition(options: ScreenshotOptions) -> str:
    filename = quote(options.filename, safe=":/?#[]@!$&'()*+,;=%~")
    return f'inline; filename="{filename}"'


def image_response(options: ScreenshotOptions, image: bytes) -> Response:
    return Response(
        content=image,
        media_type=options.content_type,
        headers={
            "Content-Disposition": content_disposition(options),
            "Content-Length": str(len(image)),
            "Cache-Control": f"public, max-age={settings.cache_ttl}",
        },
    )


@router.get(
    "/screenshot",
    response_class=Response,
    responses={
        200: {"content": {f"image/{fmt}": {} for fmt in IMAGE_TYPES}},
        400: {"model": ValidationErrorResponse},
        401: {"model": MessageResponse},
        500: {"model": ErrorResponse},
    },
)
async def screenshot(request: Request):
    # raises pydantic.ValidationError, answered with a 400 by the app handler
    query = ScreenshotQuery.model_validate(dict(request.query_params))

    if not is_authorized(request.headers.get("referer"), query.key):
        logger.info("Rejected screenshot request for %s", query.url)
        return unauthorized()

    options = query.resolve()
    result = await screenshot_cache.get_or_render(
        options,
        lambda: render_screenshot(options),
        tag=options.url,
    )

    if not result.ok:
        return JSONResponse(
            status_code=failure_status(result.failure),
            content={"error": RENDER_ERROR_MESSAGE},
        )

    return image_response(options, result.image)


@router.delete(
    "/screenshot/cache",
    response_model=CacheInvalidationResponse,
    responses={401: {"model": MessageResponse}},
)
async def invalidate_screenshot_cache(request: Request):
    query = CacheInvalidationQuery.model_validate(dict(request.query_params))

    if not is_authorized(request.headers.get("referer"), query.key):
        return unauthorized()

    invalidated = screenshot_cache.invalidate_tag(query.url.strip())
    return {"url": query.url, "invalidated": invalidated}
