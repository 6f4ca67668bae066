"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    api_key: str

    scrapingbee_api_key: str = ""
    scrapingbee_api_url: str = "https://app.scrapingbee.com/api/v1/"
    scrapingbee_timeout_ms: int = 30000
    scrapingbee_country_code: str = "us"

    openai_api_key: str = ""
    generation_model: str = "gpt-4o"
    edit_model: str = "gpt-4-turbo"

    supabase_url: str = ""
    supabase_key: str = ""
    storage_bucket: str = "project-assets"

    redis_url: str = "redis://localhost:6379"

    min_request_interval_seconds: float = 20.0
    generation_max_retries: int = 3
    generation_retry_delay_seconds: float = 5.0

    scrape_max_retries: int = 3
    scrape_retry_delay_seconds: float = 2.0
    image_check_timeout_seconds: float = 5.0
    screenshot_blank_stddev: float = 2.0

    log_level: str = "INFO"

    def required_credentials(self) -> dict[str, str]:
        """Credentials a scrape needs before it may touch the network, keyed by env var."""
        return {
            "SCRAPINGBEE_API_KEY": self.scrapingbee_api_key,
            "OPENAI_API_KEY": self.openai_api_key,
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_KEY": self.supabase_key,
        }


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
