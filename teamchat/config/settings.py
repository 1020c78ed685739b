"""
Application Configuration
Centralized configuration management using environment variables
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables"""

    APP_NAME: str = "TeamChat API"
    APP_VERSION: str = "1.0.0"

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3001"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Configuration
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    # JWT Configuration (shared by HTTP calls and WebSocket handshakes)
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET", "change_me_in_prod")
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_HOURS: int = 24

    # Password hashing
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

    # Local Database
    SQLITE_DB_PATH: str = os.getenv("SQLITE_DB_PATH", "./data/chat.db")

    # Messaging
    HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "100"))
    MAX_MESSAGE_LENGTH: int = int(os.getenv("MAX_MESSAGE_LENGTH", "4000"))
    DEFAULT_CHANNEL_NAME: str = "general"
    DELETED_MESSAGE_PLACEHOLDER: str = "This message was deleted"

    # Profile colors handed out at registration
    USER_COLORS = [
        "#ef4444", "#f97316", "#eab308", "#84cc16", "#22c55e", "#0ea5e9",
        "#3b82f6", "#6366f1", "#a855f7", "#d946ef", "#f43f5e",
    ]

    # Limit channel_created for direct/private channels to their members
    SCOPE_PRIVATE_CHANNEL_EVENTS: bool = os.getenv("SCOPE_PRIVATE_CHANNEL_EVENTS", "true").lower() == "true"

    # WebSocket keepalive: ping after this many idle seconds
    WS_KEEPALIVE_SECONDS: float = float(os.getenv("WS_KEEPALIVE_SECONDS", "30"))

    @property
    def is_configured(self) -> bool:
        """Check if a non-default signing secret is present"""
        return bool(self.JWT_SECRET_KEY) and self.JWT_SECRET_KEY != "change_me_in_prod"

    def ensure_data_dir(self) -> None:
        db_path = Path(self.SQLITE_DB_PATH)
        db_path.parent.mkdir(parents=True, exist_ok=True)


# Global settings instance
settings = Settings()
