import json
import re
from typing import Annotated, Any, List, Optional

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_SPAM_KEYWORDS = [
    "casino",
    "lottery",
    "winner",
    "click here",
    "free money",
    "viagra",
    "crypto",
]

LOCAL_ORIGINS = [
    "http://localhost:5500",
    "http://localhost:3000",
    "http://127.0.0.1:5500",
    "http://127.0.0.1:3000",
]


class Settings(BaseSettings):
    PROJECT_NAME: str = "Portfolio Contact API"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    PORT: int = 3000

    # --- Environment & Debug ---
    ENVIRONMENT: str = "development"
    DEBUG: bool = False  # Default to False for security
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # --- SMTP relay ---
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_SECURE: bool = False  # True for implicit TLS (port 465)
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[SecretStr] = None
    SMTP_TIMEOUT_SECONDS: float = 10.0

    # --- Contact form ---
    CONTACT_EMAIL: str = "owner@example.com"  # Operator inbox for notifications
    OWNER_NAME: str = "Portfolio Owner"  # Signature on acknowledgements
    SPAM_KEYWORDS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SPAM_KEYWORDS),
        description="Case-insensitive substrings that mark a message as spam.",
    )
    MAX_BODY_BYTES: int = 10 * 1024

    # --- Rate Limiting / Proxy ---
    RATE_LIMIT_MAX: int = 5
    API_RATE_LIMIT_MAX: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    REDIS_URL: Optional[str] = None  # In-memory counters when unset
    TRUSTED_PROXIES: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"],
        description="CIDR ranges of trusted reverse proxies for X-Forwarded-For",
    )

    # --- CORS ---
    FRONTEND_URL: str = "http://localhost:5500"
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=list,
        description="List of allowed CORS origins. Configure in .env",
    )
    ALLOWED_METHODS: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "OPTIONS"],
    )
    ALLOWED_HEADERS: List[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization", "X-Requested-With"],
    )
    CORS_MAX_AGE: int = 86400

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("SPAM_KEYWORDS", "TRUSTED_PROXIES", "ALLOWED_ORIGINS", mode="before")
    @classmethod
    def split_comma_separated(cls, v: Any) -> Any:
        # Environment values arrive as "a,b,c" or a JSON list
        if isinstance(v, str):
            raw = v.strip()
            if raw.startswith("["):
                return json.loads(raw)
            return [item.strip() for item in raw.split(",") if item.strip()]
        return v

    @field_validator("SPAM_KEYWORDS", mode="after")
    @classmethod
    def normalize_keywords(cls, v: List[str]) -> List[str]:
        return [keyword.lower() for keyword in v if keyword]

    @field_validator("RATE_LIMIT_MAX", "API_RATE_LIMIT_MAX", "RATE_LIMIT_WINDOW_SECONDS")
    @classmethod
    def validate_positive(cls, v: int, info: ValidationInfo) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return v

    @property
    def email_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)

    @property
    def cors_origins(self) -> List[str]:
        origins = list(self.ALLOWED_ORIGINS)
        if self.FRONTEND_URL and self.FRONTEND_URL not in origins:
            origins.append(self.FRONTEND_URL)
        for origin in LOCAL_ORIGINS:
            if origin not in origins:
                origins.append(origin)
        return origins

    @property
    def cors_origin_regex(self) -> Optional[str]:
        """Outside production any localhost origin is accepted."""
        if self.ENVIRONMENT == "production":
            return None
        return r"https?://(localhost|127\.0\.0\.1)(:\d+)?"

    def origin_allowed(self, origin: str) -> bool:
        """Same decision CORSMiddleware makes for ``origin``."""
        if origin in self.cors_origins:
            return True
        regex = self.cors_origin_regex
        return bool(regex and re.fullmatch(regex, origin))


settings = Settings()

# Import centralized email configuration
from portfolio_api.core.email_config import email_config  # noqa: E402,F401
