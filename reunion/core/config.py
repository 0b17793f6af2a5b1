"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Reunion Registration"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces for external access
    port: int = 10000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./reunion.db"

    # Supabase (identity + object storage)
    supabase_url: str = ""
    supabase_anon_key: str = ""
    storage_bucket: str = "images"

    # Brevo transactional email
    brevo_api_key: str = ""
    brevo_api_url: str = "https://api.brevo.com/v3/smtp/email"
    mail_sender_name: str = "Reunion Team"
    mail_sender_email: str = ""

    # reCAPTCHA v3
    recaptcha_secret_key: str = ""
    recaptcha_site_key: str = ""
    recaptcha_verify_url: str = "https://www.google.com/recaptcha/api/siteverify"
    recaptcha_min_score: float = 0.5

    # Check-in credential seed prefix
    event_code: str = "Reunion-2026"

    # Rate limiting
    global_rate_limit: int = 100
    global_rate_window_minutes: int = 15
    registration_rate_limit: int = 5  # 5-100 depending on deployment
    registration_rate_window_minutes: int = 60

    # Outbound calls to identity/storage/email/captcha services
    http_timeout_seconds: float = 10.0


settings = Settings()
