"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NonEmptyStr = Annotated[str, Field(min_length=1)]
PositiveFloat = Annotated[float, Field(gt=0.0)]
PositiveInt = Annotated[int, Field(gt=0)]
# Cost 10 is the floor for production hashing; bcrypt caps the cost at 31.
BcryptRounds = Annotated[int, Field(ge=10, le=31)]

DEFAULT_CORS_ALLOWED_ORIGINS = ["https://arts-wave.vercel.app"]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    bcrypt_rounds: BcryptRounds = Field(default=12, validation_alias="BCRYPT_ROUNDS")
    auth_token_ttl_seconds: PositiveInt = Field(
        default=86_400,
        validation_alias="AUTH_TOKEN_TTL_SECONDS",
    )
    storage_timeout_seconds: PositiveFloat = Field(
        default=5.0,
        validation_alias="STORAGE_TIMEOUT_SECONDS",
    )
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CORS_ALLOWED_ORIGINS),
        validation_alias="CORS_ALLOWED_ORIGINS",
    )
    port: PositiveInt = Field(default=3000, validation_alias="PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
