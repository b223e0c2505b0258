"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic import model_validator
from pydantic_settings import BaseSettings
from typing import List

DEVELOPMENT_SECRET_KEY = "dental_clinic_secret_key"


class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.

    Attributes:
        database_url: PostgreSQL (or SQLite) connection string
        db_timeout_seconds: Deadline applied to store connections and statements
        secret_key: Secret key for JWT token signing
        algorithm: Algorithm used for JWT signing (HS256)
        access_token_expire_minutes: Session token lifetime in minutes (7 days)
        bcrypt_rounds: Work factor for password hashing
        hash_timeout_seconds: Upper bound on a queued hashing job

        host, port: Listening address for the server
        environment: "development" or "production"; production hides internal error detail
        log_level: Root logging level

        # Bootstrap admin settings
        bootstrap_admin_email: Email of the seeded administrator
        bootstrap_admin_password: Initial password of the seeded administrator
        bootstrap_admin_first_name / bootstrap_admin_last_name: Display name

        # HTTP plumbing
        cors_origins: Allowed CORS origins
        rate_limit_enabled / rate_limit_requests / rate_limit_window_seconds
    """
    # Database settings
    database_url: str = "sqlite:///./clinic.db"
    db_timeout_seconds: float = 10.0

    # JWT settings
    secret_key: str = DEVELOPMENT_SECRET_KEY
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60

    # Password hashing
    bcrypt_rounds: int = 10
    hash_timeout_seconds: float = 30.0

    # Server settings
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"
    log_level: str = "INFO"

    # Bootstrap admin settings (used once, on first start)
    bootstrap_admin_email: str = "admin@clinic.com"
    bootstrap_admin_password: str = "admin123"
    bootstrap_admin_first_name: str = "System"
    bootstrap_admin_last_name: str = "Administrator"

    # CORS and rate limiting
    cors_origins: List[str] = ["*"]
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 15 * 60

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @model_validator(mode="after")
    def check_production_secret(self):
        if self.is_production and self.secret_key == DEVELOPMENT_SECRET_KEY:
            raise ValueError("SECRET_KEY must be set when ENVIRONMENT=production")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return self


# Create settings instance
settings = Settings()
