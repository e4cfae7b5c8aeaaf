"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False
    public_base_url: str = "http://localhost:3000"

    # Database
    database_url: str = "postgresql+asyncpg://storefront:storefront_dev_password@db:5432/storefront"
    auto_create_schema: bool = False

    # Sessions
    session_secret: str = "dev-session-secret-change-in-production"
    session_ttl_hours: int = 24 * 7
    session_cookie_name: str = "storefront_session"
    session_cookie_secure: bool = False

    # Shop rules
    currency: str = "GBP"
    return_window_days: int = 3
    repair_opening_hour: int = 9
    repair_closing_hour: int = 17
    shop_timezone: str = "Europe/London"

    # Email
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = "no-reply@storefront.local"
    admin_email: str = ""
    support_email: str = ""
    error_report_email: str = ""
    contact_phone: str = ""

    # Payments
    stripe_secret_key: str = ""

    # Image hosting
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "products"

    # Logging
    log_level: str = "INFO"

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def admin_recipient(self) -> str:
        """Address that receives order, return and question notifications."""
        return self.admin_email or self.email_from

    @property
    def support_recipient(self) -> str:
        """Address that receives repair and contact notifications."""
        return self.support_email or self.admin_recipient

    @property
    def contact_email(self) -> str:
        """Address shown to customers when something goes wrong."""
        return self.support_email or self.email_from


settings = Settings()
