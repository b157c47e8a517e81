from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/jobs.db"
    log_level: str = "INFO"

    # Listing providers (tried in this order)
    rapidapi_key: str = ""
    indeed_publisher_id: str = ""
    provider_timeout_seconds: float = 30.0

    # Geocoding / transit routing
    google_maps_api_key: str = ""
    commute_concurrency: int = 5

    # Redis cache for geocode and transit lookups
    redis_url: str = "redis://localhost:6379"

    # Motivational messages for daily plans
    ai_messages_enabled: bool = False
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Search defaults
    default_location: str = "Orlando, FL"
    default_max_commute_minutes: int = 45

    # Daily plans
    daily_plan_size: int = 8
    daily_plan_hour: int = 6
    plan_candidate_days: int = 30
    plan_candidate_limit: int = 500

    # Employers that receive the reputation bonus in ranking
    quality_employers: list[str] = [
        "orlando health",
        "adventhealth",
        "valencia college",
        "ucf",
        "lockheed martin",
        "disney",
        "universal",
        "publix",
        "amazon",
        "target",
        "costco",
        "chewy",
        "electronic arts",
        "siemens",
        "deloitte",
        "jpmorgan",
        "bank of america",
    ]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
