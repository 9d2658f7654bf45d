"""
Configuration settings for the application
"""
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,  # Allow both field name and alias
        extra="ignore",
    )

    # Core authentication and security
    jwt_secret_key: Optional[str] = Field(default=None, alias="JWT_SECRET_KEY")
    # Comma-separated; accounts signing up with these emails get the admin role
    admin_emails: str = Field(default="", alias="ADMIN_EMAILS")

    # Stripe webhook signing secret; restaurants bring their own API keys
    stripe_webhook_secret: Optional[str] = Field(default=None, alias="STRIPE_WEBHOOK_SECRET")

    # PayPal platform credentials, used when a restaurant has none of its own
    paypal_client_id: Optional[str] = Field(default=None, alias="PAYPAL_CLIENT_ID")
    paypal_client_secret: Optional[str] = Field(default=None, alias="PAYPAL_CLIENT_SECRET")

    # OpenAI-compatible chat completion API for the restaurant assistant
    ai_api_key: Optional[str] = Field(default=None, alias="AI_API_KEY")
    ai_base_url: Optional[str] = Field(default="https://api.deepseek.com/v1", alias="AI_BASE_URL")
    ai_model: str = Field(default="deepseek-chat", alias="AI_MODEL")

    # Infrastructure configuration
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    database_url: Optional[str] = Field(default="sqlite+aiosqlite:///./tably.db", alias="DATABASE_URL")
    rate_limit_per_minute: int = Field(default=60, alias="RATE_LIMIT_PER_MINUTE")

    # Frontend configuration
    frontend_url: Optional[str] = Field(default="http://localhost:3000", alias="FRONTEND_URL")

    # Render.com deployment configuration
    render: Optional[str] = Field(default=None, alias="RENDER")
    render_external_url: Optional[str] = Field(default=None, alias="RENDER_EXTERNAL_URL")
    render_service_name: Optional[str] = Field(default=None, alias="RENDER_SERVICE_NAME")

    # Environment configuration
    env: Optional[str] = Field(default=None, alias="ENV")

    @property
    def admin_email_list(self) -> List[str]:
        return [email.strip().lower() for email in self.admin_emails.split(",") if email.strip()]


# Instantiate settings object
settings = Settings()

# Determine if we're in production mode
IS_PRODUCTION = bool(settings.render) or bool(settings.env and settings.env.lower() == "production")
