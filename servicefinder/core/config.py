from functools import lru_cache
from typing import List, Literal, Union
from pydantic import AnyHttpUrl, ValidationError, field_validator
from pydantic_settings import BaseSettings


class ConfigError(RuntimeError):
    """Raised when required startup configuration is missing or invalid."""


class Settings(BaseSettings):
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Service Finder"

    # Hosted data service (required, no defaults)
    SUPABASE_URL: str
    SUPABASE_ANON_KEY: str
    PROVIDERS_TABLE: str = "service_providers"

    # Landing page behaviour
    SEARCH_DEBOUNCE_SECONDS: float = 0.3
    BACKGROUND_ROTATE_SECONDS: float = 5.0
    LANDING_VARIANT: Literal["detailed", "compact"] = "detailed"

    LOG_LEVEL: str = "INFO"

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
    ]

    @field_validator("SUPABASE_URL", "SUPABASE_ANON_KEY")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    class Config:
        case_sensitive = True
        env_file = ".env"


def load_settings(**overrides) -> Settings:
    """Build settings from the environment, failing loudly on missing values."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise ConfigError(
            f"Missing or invalid configuration: {', '.join(fields)}"
        ) from e


@lru_cache
def get_settings() -> Settings:
    return load_settings()
