from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    port: int = 8080
    log_level: str = "INFO"

    # Access control
    api_key: str = ""
    allowed_origins: list[str] = []  # referer hostnames, JSON array in env
    bypass_auth_check: bool = False

    # Browser launch
    environment: Literal["production", "development"] = "development"
    chromium_executable_path: Optional[str] = None

    # Page load (milliseconds)
    navigation_timeout: int = 10000
    wait_until: Literal["load", "domcontentloaded", "networkidle"] = "load"
    post_load_delay: int = 1000

    # Screenshot behavior
    screenshot_max_concurrent: int = 4

    # Response cache
    cache_ttl: int = 3600  # seconds
    cache_max_entries: int = 256  # 0 disables the bound

    # Rate limiting
    rate_limit: str = "100/15minutes"
    rate_limit_enabled: bool = True

    # CORS
    cors_origins: list[str] = []

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
