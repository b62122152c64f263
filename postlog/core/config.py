from pydantic_settings import BaseSettings, SettingsConfigDict

SDK_VERSION = "0.1.0"


class Settings(BaseSettings):
    """SDK settings loaded from POSTLOG_* environment variables."""

    # API
    api_token: str = ""
    base_url: str = "https://api.postlog.app/v1"

    # Dispatch
    request_timeout: float = 30.0
    max_concurrent_requests: int = 3

    # Diagnostics
    debug_logging: bool = False

    model_config = SettingsConfigDict(
        env_prefix="POSTLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
