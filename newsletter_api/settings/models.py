from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from newsletter_api.core.ports.email import EmailAddress


class ApplicationSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=0, le=65535)
    base_url: str = "http://127.0.0.1:8000"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class DatabaseSettings(BaseModel):
    path: str = "./data/newsletter.db"
    migrations_dir: str = "migrations"
    pool_size: int = Field(default=5, ge=1, le=100)
    pool_timeout_seconds: float = Field(default=2.0, gt=0)


class EmailClientSettings(BaseModel):
    enabled: bool = True
    base_url: str
    sender_email: str
    sender_name: str | None = None
    authorization_token: SecretStr
    timeout_milliseconds: int = Field(default=10_000, gt=0)

    @field_validator("sender_email")
    @classmethod
    def validate_sender(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError("sender_email must be an email address")
        return value

    def sender(self) -> EmailAddress:
        return EmailAddress(self.sender_email, self.sender_name)

    def timeout_seconds(self) -> float:
        return self.timeout_milliseconds / 1000


class LoggingSettings(BaseModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class Settings(BaseSettings):
    """
    Service configuration.

    YAML layers arrive as init kwargs; ``APP_<SECTION>__<KEY>`` environment
    variables are merged over them field by field.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    email_client: EmailClientSettings
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings

    @property
    def confirmation_url(self) -> str:
        return f"{self.application.base_url}/subscriptions/confirm"
