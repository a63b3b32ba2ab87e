from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "MLS Listing Sync"
    debug: bool = False
    api_prefix: str = "/api"

    database_url: str = "sqlite:///./real_estate.db"

    cors_origins: str = "http://localhost:3000"

    # MLS feed
    mls_api_key: str = ""
    mls_api_url: str = "https://api.mls.com/v1"
    mls_request_timeout: float = 30.0
    mls_default_page_size: int = 100
    mls_default_status: str = "Active"

    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"

    model_config = {"env_file": ".env"}


settings = Settings()
