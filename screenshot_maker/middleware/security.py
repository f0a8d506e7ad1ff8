import hmac
import logging
from typing import Optional
from urllib.parse import urlparse

from screenshot_maker.config import settings

logger = logging.getLogger(__name__)


def is_authorized(referer: Optional[str], api_key: Optional[str]) -> bool:
    """Authorize a caller by bypass flag, API key, then referer hostname."""
    if settings.bypass_auth_check:
        return True

    if is_valid_key(api_key):
        return True

    if is_allowed_referer(referer):
        return True

    return False


def is_valid_key(api_key: Optional[str]) -> bool:
    if not api_key or not settings.api_key:
        return False
    return hmac.compare_digest(api_key.encode(), settings.api_key.encode())


def is_allowed_referer(referer: Optional[str]) -> bool:
    if not referer or not settings.allowed_origins:
        return False

    try:
        hostname = urlparse(referer).hostname
    except ValueError:
        logger.debug("Unparseable referer: %r", referer)
        return False

    return hostname is not None and hostname in settings.allowed_origins
