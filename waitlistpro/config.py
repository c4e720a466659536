"""
Process settings read from the environment (or .env).
DATABASE_URL and APP_SECRET_KEY have no default: Settings() raises without them.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_base_url: str = "http://localhost:3000"  # Public URL used in email links
    app_secret_key: str
    log_level: str = "INFO"

    # Database
    database_url: str
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Redis (auth rate limiting only)
    redis_url: str = "redis://localhost:6379/0"

    # Dashboard auth
    dashboard_jwt_secret: str = ""
    dashboard_jwt_expiry_hours: int = 24 * 7
    allowed_origins: str = ""  # Comma-separated CORS origins (auto-includes localhost)

    # SendGrid
    sendgrid_api_key: str = ""
    sendgrid_from_email: str = "noreply@updates.waitlistpro.app"
    sendgrid_from_name: str = "WaitlistPro"

    # Sentry
    sentry_dsn: str = ""

    # Fraud scoring
    fraud_ip_hourly_limit: int = 10
    fraud_rapid_signup_limit: int = 3
    fraud_reject_score: int = 40
    fraud_clamp_score: bool = False

    # Viral metrics
    kfactor_trend_window_days: int = 7
    kfactor_trend_tolerance: float = 0.05

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
