"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis (wizard session store)
    redis_url: str = "redis://localhost:6379/0"
    session_ttl_seconds: int = 3600  # idle wizard sessions expire after 1 h

    # Persistence collaborator (rides / missions API)
    booking_api_url: str = "http://localhost:8080/api"
    booking_api_timeout_seconds: float = 10.0

    # Vehicle registration lookup
    registration_api_url: str = "https://api-immat.vercel.app"
    registration_api_timeout_seconds: float = 8.0
    plate_lookup_debounce_seconds: float = 1.0

    # Booking defaults
    default_mission_duration_hours: float = 12.0

    # API
    rate_limit: str = "100/minute"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
