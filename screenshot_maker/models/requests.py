from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

DEFAULT_WIDTH = 1512
DEFAULT_HEIGHT = 982
DEFAULT_SCALE = 0.25
DEFAULT_QUALITY = 50
DEFAULT_FULL_PAGE = False
DEFAULT_TYPE = "png"

IMAGE_TYPES = ("png", "jpeg", "webp", "avif")
LOSSLESS_TYPES = frozenset({"png"})
FALSE_STRINGS = frozenset({"false", "0", "off", "no"})

ImageType = Literal["png", "jpeg", "webp", "avif"]

_http_url = TypeAdapter(HttpUrl)


@dataclass(frozen=True)
class ScreenshotOptions:
    """Fully resolved render parameters. Hashable, used as the cache key."""

    url: str
    width: int
    height: int
    scale: float
    quality: Optional[int]
    full_page: bool
    type: str

    @property
    def content_type(self) -> str:
        return f"image/{self.type}"

    @property
    def filename(self) -> str:
        return f"{self.url}.{self.type}"


class ScreenshotQuery(BaseModel):
    """Query string of ``GET /api/screenshot``.

    Validation is strict and does not fill in defaults; ``resolve()`` does that
    afterwards so errors only ever describe what the caller actually sent.
    """

    model_config = ConfigDict(extra="ignore")

    url: str
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)
    scale: Optional[float] = Field(default=None, ge=0.1, le=1)
    quality: Optional[int] = Field(default=None, ge=1, le=100)
    fullPage: Optional[bool] = None
    type: Optional[ImageType] = None
    key: Optional[str] = None

    @field_validator("width", "height", "scale", "quality", "type", mode="before")
    @classmethod
    def blank_as_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("fullPage", mode="before")
    @classmethod
    def coerce_full_page(cls, v):
        # any non-empty string other than an explicit "no" turns it on
        if isinstance(v, str):
            v = v.strip().lower()
            if not v:
                return None
            return v not in FALSE_STRINGS
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        try:
            _http_url.validate_python(v)
        except ValidationError:
            raise ValueError("Invalid URL") from None
        return v

    @model_validator(mode="after")
    def check_dimensions(self) -> "ScreenshotQuery":
        if self.width is not None and self.height is None:
            raise PydanticCustomError(
                "dimension_required",
                "Height is required when width is provided",
                {"field": "height"},
            )
        if self.height is not None and self.width is None:
            raise PydanticCustomError(
                "dimension_required",
                "Width is required when height is provided",
                {"field": "width"},
            )
        return self

    def resolve(self) -> ScreenshotOptions:
        fmt = self.type or DEFAULT_TYPE
        full_page = DEFAULT_FULL_PAGE if self.fullPage is None else self.fullPage
        scale = DEFAULT_SCALE if self.scale is None else self.scale
        quality = DEFAULT_QUALITY if self.quality is None else self.quality
        return ScreenshotOptions(
            url=self.url,
            width=self.width or DEFAULT_WIDTH,
            height=self.height or DEFAULT_HEIGHT,
            # full-page captures are never rescaled, lossless output takes no quality
            scale=1.0 if full_page else scale,
            quality=None if fmt in LOSSLESS_TYPES else quality,
            full_page=full_page,
            type=fmt,
        )


class CacheInvalidationQuery(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
    key: Optional[str] = None


def validation_issues(exc: ValidationError) -> list[dict]:
    """Flatten a ValidationError into ``{path, message, code}`` issues."""
    issues = []
    for err in exc.errors(include_url=False, include_input=False):
        path = list(err.get("loc", ()))
        if not path and "field" in err.get("ctx", {}):
            path = [err["ctx"]["field"]]
        issues.append({"path": path, "message": err.get("msg", ""), "code": err.get("type", "")})
    return issues
