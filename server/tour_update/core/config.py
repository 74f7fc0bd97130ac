"""Configuration settings for the FastAPI application."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with Pydantic validation."""

    # Environment settings
    environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Application log level"
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Server host"
    )

    port: int = Field(
        default=8000,
        description="Server port"
    )

    # Tracing
    otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP gRPC endpoint for trace export; tracing stays local when unset"
    )

    # External update-request endpoints
    update_request_api_url: str = Field(
        default="http://localhost:8080/api/tour",
        description="Base URL of the external tour API that stores update requests"
    )

    update_request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for calls to the external update-request endpoints"
    )

    # Schedule constraint limits
    max_schedule_days: int = Field(
        default=365,
        ge=1,
        description="Upper bound for duration days and minimum advance days"
    )

    max_capacity: int = Field(
        default=9999,
        ge=1,
        description="Upper bound for the number of seats a tour offers"
    )

    default_day_color: str = Field(
        default="#10b981",
        pattern=r"^#[0-9a-fA-F]{6}$",
        description="Colour given to newly created itinerary days"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = ["development", "staging", "production", "test"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("update_request_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Drop trailing slashes so paths can be joined with '/'."""
        return v.rstrip("/")

    @property
    def debug(self) -> bool:
        """Return True if in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Return True if in production mode."""
        return self.environment == "production"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Global settings instance
settings = Settings()
