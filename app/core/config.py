from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Values from .env never override variables already set in the environment
load_dotenv()

DEFAULT_SMTP_HOST = "smtp-relay.brevo.com"
DEFAULT_SMTP_PORT = 587


class Settings(BaseSettings):
    PROJECT_NAME: str = "Garage Services Backend"

    # Server
    HOST: str = "localhost"
    PORT: int = 5000
    ENVIRONMENT: str = "development"
    CORS_ORIGIN: str = "*"
    SENTINEL_DIR: str = "."

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_FILE: str = "logs/errors.log"

    # SMTP (primary name first, legacy JAVA_ prefixed name second)
    SMTP_HOST: str = Field(default=DEFAULT_SMTP_HOST, validation_alias=AliasChoices("SMTP_HOST", "JAVA_SMTP_HOST"))
    SMTP_PORT: int = Field(default=DEFAULT_SMTP_PORT, validation_alias=AliasChoices("SMTP_PORT", "JAVA_SMTP_PORT"))
    SMTP_SECURE: Optional[bool] = Field(default=None, validation_alias=AliasChoices("SMTP_SECURE", "JAVA_SMTP_SECURE"))
    SMTP_USER: str = Field(default="", validation_alias=AliasChoices("SMTP_USER", "JAVA_SMTP_USER"))
    SMTP_PASS: str = Field(default="", validation_alias=AliasChoices("SMTP_PASS", "JAVA_SMTP_PASS"))
    SMTP_FROM: str = Field(default="", validation_alias=AliasChoices("SMTP_FROM", "JAVA_SMTP_FROM"))
    SMTP_TIMEOUT: float = 15.0

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_ignore_empty=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _normalize_gmail_password(self) -> "Settings":
        # Gmail app passwords are usually copied as four space separated groups
        if self.is_gmail_host:
            self.SMTP_PASS = self.SMTP_PASS.replace(" ", "")
        return self

    @property
    def is_gmail_host(self) -> bool:
        return "gmail.com" in self.SMTP_HOST.lower()

    @property
    def smtp_use_ssl(self) -> bool:
        """Implicit TLS. Defaults to on only for the SMTPS port."""
        if self.SMTP_SECURE is None:
            return self.SMTP_PORT == 465
        return self.SMTP_SECURE

    def missing_smtp_settings(self) -> List[str]:
        required = {
            "SMTP_USER": self.SMTP_USER,
            "SMTP_PASS": self.SMTP_PASS,
            "SMTP_FROM": self.SMTP_FROM,
        }
        return [name for name, value in required.items() if not value]

    @property
    def smtp_configured(self) -> bool:
        return not self.missing_smtp_settings()


@lru_cache()
def get_settings() -> Settings:
    """Settings are resolved once per process."""
    return Settings()
