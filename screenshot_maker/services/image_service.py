import asyncio
import io
import logging
from typing import Optional

from PIL import Image

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    "png": "PNG",
    "jpeg": "JPEG",
    "webp": "WEBP",
    "avif": "AVIF",
}


def scaled_size(width: int, height: int, scale: float) -> tuple[int, int]:
    return max(1, round(width * scale)), max(1, round(height * scale))


def process_image(data: bytes, fmt: str, quality: Optional[int] = None, scale: float = 1.0) -> bytes:
    """Downscale a PNG capture and re-encode it as ``fmt``.

    ``quality`` only applies to lossy formats and is ignored for PNG.
    """
    if fmt not in PIL_FORMATS:
        raise ValueError(f"Unsupported image type: {fmt}")

    if fmt == "png" and scale >= 1:
        return data

    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if scale < 1:
            size = scaled_size(img.width, img.height, scale)
            img = img.resize(size, Image.Resampling.LANCZOS)
            logger.debug("Resized capture to %dx%d", *size)

        if fmt == "jpeg" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")

        save_opts: dict = {"format": PIL_FORMATS[fmt]}
        if fmt == "png":
            save_opts["optimize"] = True
        elif quality is not None:
            save_opts["quality"] = quality

        buffer = io.BytesIO()
        img.save(buffer, **save_opts)
        return buffer.getvalue()


async def process_image_async(data: bytes, fmt: str, quality: Optional[int] = None, scale: float = 1.0) -> bytes:
    return await asyncio.to_thread(process_image, data, fmt, quality, scale)
