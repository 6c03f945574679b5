"""Application-wide configuration settings."""

from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv(override=True)

# Base paths
BASE_DIR = Path(__file__).parent
LOGS_DIR = BASE_DIR / "logs"


class APISettings(BaseSettings):
    """API-related settings."""

    cors_origins: list[str] = Field(default=["http://localhost:3000"])
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class DatabaseSettings(BaseSettings):
    """Database-related settings."""

    mongodb_uri: str = Field(default="mongodb://localhost:27017", validation_alias="MONGODB_URI")
    database_name: str = Field(default="carmarket", validation_alias="DATABASE_NAME")

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class AISettings(BaseSettings):
    """Vision model settings."""

    google_api_key: SecretStr = Field(default=SecretStr(""), validation_alias="GEMINI_API_KEY")
    vision_model: str = Field(default="gemini-2.5-flash", validation_alias="AI_VISION_MODEL")
    temperature: float = Field(default=0.1)
    max_tokens: Optional[int] = Field(default=None)
    request_timeout: float = Field(default=60.0, validation_alias="AI_REQUEST_TIMEOUT")

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class StorageSettings(BaseSettings):
    """Object storage settings (any S3-compatible endpoint)."""

    bucket: str = Field(default="car-images", validation_alias="STORAGE_BUCKET")
    endpoint_url: Optional[str] = Field(default=None, validation_alias="STORAGE_ENDPOINT_URL")
    region: str = Field(default="us-east-1", validation_alias="STORAGE_REGION")
    access_key_id: SecretStr = Field(default=SecretStr(""), validation_alias="STORAGE_ACCESS_KEY_ID")
    secret_access_key: SecretStr = Field(default=SecretStr(""), validation_alias="STORAGE_SECRET_ACCESS_KEY")
    # Public objects are served from <public_base_url>/<bucket>/<key>
    public_base_url: str = Field(
        default="http://localhost:9000", validation_alias="STORAGE_PUBLIC_BASE_URL"
    )

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class RateLimitSettings(BaseSettings):
    """Settings for the image search rate decisions."""

    enabled: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    capacity: int = Field(default=10, validation_alias="RATE_LIMIT_CAPACITY")
    window_seconds: int = Field(default=3600, validation_alias="RATE_LIMIT_WINDOW_SECONDS")
    key_prefix: str = Field(default="ratelimit:image-search")
    blocked_user_agents: List[str] = Field(
        default=["curl", "wget", "python-requests", "scrapy", "headlesschrome", "bot", "spider"]
    )
    # X-Forwarded-For is only honoured on connections from these addresses
    trusted_proxies: List[str] = Field(default=[])

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class CacheSettings(BaseSettings):
    """Redis cache settings."""

    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    prefix: str = Field(default="carmarket-cache")
    view_ttl: int = Field(default=300)

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class AuthSettings(BaseSettings):
    """Identity provider token verification settings."""

    jwt_key: SecretStr = Field(default=SecretStr(""), validation_alias="AUTH_JWT_KEY")
    algorithms: List[str] = Field(default=["RS256"])
    audience: Optional[str] = Field(default=None, validation_alias="AUTH_AUDIENCE")
    issuer: Optional[str] = Field(default=None, validation_alias="AUTH_ISSUER")

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class LoggingSettings(BaseSettings):
    """Logging-related settings."""

    log_level: str = Field(default="INFO")
    file_log_level: str = Field(default="DEBUG")
    backup_count: int = Field(default=9)
    format: str = Field(default="%(name)s - %(levelname)s - %(message)s")
    file_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    enable_request_logging: bool = Field(default=False, validation_alias="ENABLE_REQUEST_LOGGING")
    noisy_loggers: Dict[str, str] = Field(
        default={
            "urllib3": "WARNING",
            "uvicorn": "WARNING",
            "pymongo": "WARNING",
            "pymongo.topology": "WARNING",
            "pymongo.connection": "WARNING",
            "botocore": "WARNING",
            "boto3": "WARNING",
            "s3transfer": "WARNING",
            "grpc": "WARNING",
            "watchfiles": "WARNING",
        }
    )

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)


class Settings(BaseSettings):
    """Global settings container.

    Built once at process start and handed to the components that need it.
    """

    api: APISettings = Field(default_factory=APISettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    ai: AISettings = Field(default_factory=AISettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(env_file=".env", extra="allow", populate_by_name=True)
