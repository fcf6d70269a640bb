import os
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    postgres_user: str = os.getenv("POSTGRES_USER", "postgres")
    postgres_password: str = os.getenv("POSTGRES_PASSWORD", "postgres")
    postgres_host: str = os.getenv("POSTGRES_HOST", "localhost")
    postgres_port: str = os.getenv("POSTGRES_PORT", "5432")
    postgres_db: str = os.getenv("POSTGRES_DB", "agro_marketplace")
    # Full SQLAlchemy URL; wins over the postgres_* parts when set
    database_url: Optional[str] = os.getenv("DATABASE_URL")

    jwt_secret: str = os.getenv("JWT_SECRET", "change-me")
    jwt_expiry_days: int = int(os.getenv("JWT_EXPIRY_DAYS", "7"))

    kafka_enabled: bool = os.getenv("KAFKA_ENABLED", "false").lower() == "true"
    kafka_bootstrap_servers: str = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")

    imagekit_public_key: Optional[str] = os.getenv("IMAGEKIT_PUBLIC_KEY")
    imagekit_private_key: Optional[str] = os.getenv("IMAGEKIT_PRIVATE_KEY")
    imagekit_url_endpoint: str = os.getenv("IMAGEKIT_URL_ENDPOINT", "https://ik.imagekit.io/agro")

    enforce_status_order: bool = os.getenv("ENFORCE_STATUS_ORDER", "true").lower() == "true"

    keepalive_url: Optional[str] = os.getenv("KEEPALIVE_URL")
    keepalive_interval_seconds: int = int(os.getenv("KEEPALIVE_INTERVAL_SECONDS", "840"))

    seed_demo_data: bool = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_timezone: str = os.getenv("LOG_TIMEZONE", "Asia/Kolkata")
    marketplace_service_port: int = int(os.getenv("MARKETPLACE_SERVICE_PORT", "8000"))
