from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from screenshot_maker.models.requests import (
    DEFAULT_FULL_PAGE,
    DEFAULT_HEIGHT,
    DEFAULT_QUALITY,
    DEFAULT_SCALE,
    DEFAULT_TYPE,
    DEFAULT_WIDTH,
    IMAGE_TYPES,
)

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

EXAMPLE_TARGET = "https://bootpackdigital.com"

ARGS = [
    {"name": "url", "type": "string", "default": "", "required": True,
     "description": "The URL of the page to screenshot"},
    {"name": "width", "type": "number?", "default": DEFAULT_WIDTH,
     "description": "The width of the viewport. Requires height."},
    {"name": "height", "type": "number?", "default": DEFAULT_HEIGHT,
     "description": "The height of the viewport. Requires width."},
    {"name": "scale", "type": "number?", "default": DEFAULT_SCALE,
     "description": "The scale of the screenshot. Helpful to get a desktop screenshot, "
                    "but scaled down for rendering. Between 0.1 and 1."},
    {"name": "quality", "type": "number?", "default": DEFAULT_QUALITY,
     "description": "The quality of the screenshot. Between 1-100. Ignored for png."},
    {"name": "fullPage", "type": "boolean?", "default": DEFAULT_FULL_PAGE,
     "description": "Capture the full scrollable page instead of the viewport. Disables scale."},
    {"name": "type", "type": " | ".join(IMAGE_TYPES), "default": DEFAULT_TYPE,
     "description": "The image format of the screenshot."},
    {"name": "key", "type": "string?", "default": "",
     "description": "API key. Not needed when called from an allowed site."},
]


@router.get("/", response_class=HTMLResponse)
async def home(request: Request):
    example_url = request.url_for("screenshot").include_query_params(url=EXAMPLE_TARGET)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "args": ARGS,
            "example_url": str(example_url),
            "default_target": EXAMPLE_TARGET,
            "image_types": IMAGE_TYPES,
            "defaults": {
                "width": DEFAULT_WIDTH,
                "height": DEFAULT_HEIGHT,
                "scale": DEFAULT_SCALE,
                "quality": DEFAULT_QUALITY,
            },
        },
    )
