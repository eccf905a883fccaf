from limits import parse
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Replicate
    replicate_api_token: str = ""
    replicate_api_url: str = "https://api.replicate.com/v1/predictions"
    # jagilley/controlnet-hough (interior redesign)
    replicate_model_version: str = "854e8727697a057c525cdb45ab037f64ecca770a1769cc52287c2e56472a247b"
    replicate_timeout_seconds: float = 30.0
    # Per status check
    replicate_poll_timeout_seconds: float = 5.0

    # Polling
    poll_interval_seconds: float = 1.0
    poll_max_attempts: int = 30

    # Redis: leave empty to run without rate limiting
    redis_url: str = ""

    # Rate limiting (fixed window per client IP), in "limits" notation
    rate_limit: str = "5/day"

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://app.example.com,https://admin.example.com"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if not settings.replicate_api_token:
        errors.append("REPLICATE_API_TOKEN must be set")

    if settings.poll_max_attempts < 1:
        errors.append("POLL_MAX_ATTEMPTS must be at least 1")

    try:
        if parse(settings.rate_limit).amount < 1:
            errors.append("RATE_LIMIT must allow at least 1 request")
    except ValueError:
        errors.append(f"RATE_LIMIT is not a valid rate: {settings.rate_limit!r}")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
