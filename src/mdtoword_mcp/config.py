"""Runtime settings for mdtoword-mcp.

Values are read from environment variables prefixed with ``MDTOWORD_`` (or a
local ``.env`` file) and fall back to the defaults below.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MDTOWORD_",
        env_file=".env",
        extra="ignore",
    )

    LOG_LEVEL: str = "INFO"
    # Longer string values in log events are clipped
    LOG_MAX_VALUE_LENGTH: int = 200

    # Effective-style cache (LRU, entries keyed by serialized user config)
    STYLE_CACHE_MAX_ENTRIES: int = 128

    # Image acquisition
    IMAGE_FETCH_TIMEOUT: float = 15.0
    IMAGE_MAX_BYTES: int = 20 * 1024 * 1024  # 20 MB

    # Input limits
    MAX_MARKDOWN_SIZE: int = 10 * 1024 * 1024  # 10 MB

    # Output directory for the MCP tool (None = current working directory)
    OUTPUT_DIR: Optional[str] = None

    # HTTP gateway
    HTTP_HOST: str = "0.0.0.0"
    HTTP_PORT: int = 8000
    # Read local image paths in /convert requests (off: callers are remote)
    HTTP_ALLOW_LOCAL_IMAGES: bool = False

    # Health monitoring
    MEMORY_THRESHOLD_PERCENT: float = 80.0


settings = Settings()
