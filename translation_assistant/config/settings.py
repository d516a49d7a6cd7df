"""
Centralized Configuration for Translation Assistant
===================================================
All configuration values in one place, configurable via environment variables.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


def _get_bool_env(key: str, default: bool) -> bool:
    """Get boolean from environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get integer from environment variable."""
    try:
        return int(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def _get_float_env(key: str, default: float) -> float:
    """Get float from environment variable."""
    try:
        return float(os.environ.get(key, default))
    except (ValueError, TypeError):
        return default


def _get_list_env(key: str, default: List[str]) -> List[str]:
    """Get comma separated list from environment variable."""
    val = os.environ.get(key)
    if not val:
        return list(default)
    return [item.strip() for item in val.split(",") if item.strip()]


APP_DIR = os.environ.get(
    "TRANSLATION_ASSISTANT_APP_DIR",
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
)

DEFAULT_JWT_SECRET = "dev-jwt-secret-change-me-in-production-please"


@dataclass
class ServerConfig:
    """Flask server configuration."""
    host: str = field(default_factory=lambda: os.environ.get("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _get_int_env("PORT", 8000))
    debug: bool = field(default_factory=lambda: _get_bool_env("DEBUG", False))
    environment: str = field(default_factory=lambda: os.environ.get("APP_ENV", "development"))

    cors_origins: List[str] = field(default_factory=lambda: _get_list_env(
        "CORS_ORIGINS", ["http://localhost:3000"]
    ))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@dataclass
class JWTConfig:
    """JSON Web Token configuration."""
    secret: str = field(default_factory=lambda: os.environ.get("JWT_SECRET", DEFAULT_JWT_SECRET))
    algorithm: str = "HS256"
    expires_in_days: int = field(default_factory=lambda: _get_int_env("JWT_EXPIRES_IN_DAYS", 7))


@dataclass
class OpenAIConfig:
    """Chat completions API configuration."""
    api_key: str = field(default_factory=lambda: os.environ.get("OPENAI_API_KEY", ""))
    base_url: str = field(default_factory=lambda: os.environ.get("OPENAI_BASE_URL", "https://api.openai.com/v1"))
    model: str = field(default_factory=lambda: os.environ.get("OPENAI_MODEL", "gpt-3.5-turbo"))

    # Timeouts
    connect_timeout: int = field(default_factory=lambda: _get_int_env("OPENAI_CONNECT_TIMEOUT", 10))
    read_timeout: int = field(default_factory=lambda: _get_int_env("OPENAI_READ_TIMEOUT", 60))

    # Generation parameters
    max_tokens: int = field(default_factory=lambda: _get_int_env("OPENAI_MAX_TOKENS", 1000))
    temperature: float = field(default_factory=lambda: _get_float_env("OPENAI_TEMPERATURE", 0.7))
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.1


@dataclass
class TranslationConfig:
    """Translation request limits and retry behaviour."""
    max_text_length: int = field(default_factory=lambda: _get_int_env("MAX_TEXT_LENGTH", 5000))
    max_tags: int = field(default_factory=lambda: _get_int_env("MAX_TAGS", 10))
    max_tag_length: int = field(default_factory=lambda: _get_int_env("MAX_TAG_LENGTH", 50))

    # Retry settings
    max_retries: int = field(default_factory=lambda: _get_int_env("MAX_RETRIES", 3))
    retry_delay: float = field(default_factory=lambda: _get_float_env("RETRY_DELAY", 1.0))


@dataclass
class RateLimitRule:
    """A single fixed-window limit."""
    window_seconds: int
    max_requests: int
    message: str


@dataclass
class RateLimitConfig:
    """Rate limiting configuration for each limiter."""
    enabled: bool = field(default_factory=lambda: _get_bool_env("RATE_LIMIT_ENABLED", True))
    cleanup_interval: int = field(default_factory=lambda: _get_int_env("RATE_LIMIT_CLEANUP_SECONDS", 600))

    general: RateLimitRule = field(default_factory=lambda: RateLimitRule(
        window_seconds=_get_int_env("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
        max_requests=_get_int_env("RATE_LIMIT_MAX_REQUESTS", 100),
        message="Too many API requests, please try again in 15 minutes.",
    ))
    translation: RateLimitRule = field(default_factory=lambda: RateLimitRule(
        window_seconds=_get_int_env("TRANSLATION_RATE_LIMIT_WINDOW_SECONDS", 60 * 60),
        max_requests=_get_int_env("TRANSLATION_RATE_LIMIT_MAX_REQUESTS", 50),
        message="Translation limit exceeded. You can perform up to 50 translations per hour.",
    ))
    auth: RateLimitRule = field(default_factory=lambda: RateLimitRule(
        window_seconds=_get_int_env("AUTH_RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
        max_requests=_get_int_env("AUTH_RATE_LIMIT_MAX_REQUESTS", 5),
        message="Too many authentication attempts, please try again in 15 minutes.",
    ))
    password: RateLimitRule = field(default_factory=lambda: RateLimitRule(
        window_seconds=_get_int_env("PASSWORD_RATE_LIMIT_WINDOW_SECONDS", 60 * 60),
        max_requests=_get_int_env("PASSWORD_RATE_LIMIT_MAX_REQUESTS", 3),
        message="Too many password change attempts, please try again in 1 hour.",
    ))
    export: RateLimitRule = field(default_factory=lambda: RateLimitRule(
        window_seconds=_get_int_env("EXPORT_RATE_LIMIT_WINDOW_SECONDS", 24 * 60 * 60),
        max_requests=_get_int_env("EXPORT_RATE_LIMIT_MAX_REQUESTS", 5),
        message="Too many data export requests, please try again tomorrow.",
    ))


@dataclass
class LoggingConfig:
    """Logging configuration."""
    verbose_debug: bool = field(default_factory=lambda: _get_bool_env("VERBOSE_DEBUG", False))
    log_file_max_bytes: int = field(default_factory=lambda: _get_int_env("LOG_FILE_MAX_BYTES", 10 * 1024 * 1024))
    log_file_backup_count: int = field(default_factory=lambda: _get_int_env("LOG_FILE_BACKUP_COUNT", 5))
    log_requests: bool = field(default_factory=lambda: _get_bool_env("LOG_REQUESTS", True))


@dataclass
class DatabaseConfig:
    """SQLite configuration."""
    timeout: int = field(default_factory=lambda: _get_int_env("DB_TIMEOUT", 30))


@dataclass
class PathConfig:
    """Path configuration."""
    app_dir: str = field(default_factory=lambda: APP_DIR)

    @property
    def log_folder(self) -> Path:
        return Path(os.environ.get("LOG_DIR", Path(self.app_dir) / 'logs'))

    @property
    def db_path(self) -> str:
        return os.environ.get("DATABASE_PATH", os.path.join(self.app_dir, 'translation_assistant.db'))


@dataclass
class Config:
    """Main application configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    jwt: JWTConfig = field(default_factory=JWTConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    paths: PathConfig = field(default_factory=PathConfig)

    def __post_init__(self):
        """Create necessary directories after initialization."""
        self._create_directories()
        self._validate()

    def _create_directories(self):
        """Create necessary directories."""
        os.makedirs(self.paths.log_folder, exist_ok=True)

    def _validate(self):
        """Validate configuration values."""
        if self.server.port < 1 or self.server.port > 65535:
            raise ValueError("port must be between 1 and 65535")
        if self.openai.temperature < 0 or self.openai.temperature > 2:
            raise ValueError("temperature must be between 0 and 2")
        if self.openai.max_tokens < 1 or self.openai.max_tokens > 4096:
            raise ValueError("max_tokens must be between 1 and 4096")
        if self.translation.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if not self.jwt.secret:
            raise ValueError("jwt secret must not be empty")

    def warnings(self) -> List[str]:
        """Non-fatal configuration problems worth logging at startup."""
        problems = []
        if len(self.jwt.secret) < 32:
            problems.append("JWT secret is shorter than recommended (32 characters)")
        if self.jwt.secret == DEFAULT_JWT_SECRET and self.server.is_production:
            problems.append("JWT secret is the development default")
        if not self.openai.api_key:
            problems.append("OPENAI_API_KEY is not set; translations will fail")
        return problems


# Global configuration instance
config = Config()
