"""
Application configuration.
All settings are loaded from environment variables.
Values may also come from a local .env file.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    IMPORTANT: Credentials have no defaults - they MUST be set in .env file.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # Comma-separated origins (e.g. http://localhost:3000,http://player:80). Empty = built-in list.
    cors_origins: str = ""

    # ===========================================
    # DATABASE
    # ===========================================
    database_url: str  # Required, no default
    db_create_all: bool = False  # create tables on startup (local/dev only)

    # ===========================================
    # REDIS
    # ===========================================
    # Optional. When set, circuit breaker state is shared between workers.
    redis_url: str | None = None

    # ===========================================
    # AUTH (bearer tokens issued by the account service)
    # ===========================================
    jwt_secret_key: str  # Required, no default
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 7 * 24 * 3600

    # ===========================================
    # PAYMENTS (Razorpay)
    # ===========================================
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_api_base: str = "https://api.razorpay.com/v1"
    payment_currency: str = "INR"
    # Reject verify-payment calls without a valid gateway signature.
    payment_signature_required: bool = True
    # Price 0 is free content; by default no charge is created for it.
    allow_free_orders: bool = False
    gateway_timeout: float = 10.0

    # ===========================================
    # STORAGE & STREAMING
    # ===========================================
    video_storage_path: str = "./uploads/videos"
    media_content_type: str = "video/mp4"
    stream_chunk_size: int = 64 * 1024

    # ===========================================
    # CIRCUIT BREAKER
    # ===========================================
    cb_failure_threshold: int = 5
    cb_open_seconds: int = 30

    # ===========================================
    # LOGGING
    # ===========================================
    request_id_header: str = "X-Request-Id"
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret(cls, v: str) -> str:
        """Ensure token secret is reasonably secure."""
        if len(v) < 16:
            raise ValueError("jwt_secret_key must be at least 16 characters")
        if v in ("secret123", "changeme", "secret", "password"):
            raise ValueError("jwt_secret_key is too weak, please change it")
        return v

    @field_validator("stream_chunk_size")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("stream_chunk_size must be positive")
        return v

    @field_validator("payment_currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
