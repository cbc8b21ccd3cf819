# backend/catalogue/config.py
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./catalogue.db"  # Default if not in .env

    # Logging
    LOG_LEVEL: str = "INFO"

    # Storage Paths
    STORAGE_PATH: Path = Path("storage")
    CATALOGUES_PATH: Path | None = None  # Will be set based on STORAGE_PATH
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Rendering
    RENDER_SCALE_DESKTOP: float = 1.5
    RENDER_SCALE_MOBILE: float = 1.0
    COVER_RENDER_SCALE: float = 1.0
    INITIAL_BATCH_DESKTOP: int = 4
    INITIAL_BATCH_MOBILE: int = 2
    BATCH_SIZE_DESKTOP: int = 4
    BATCH_SIZE_MOBILE: int = 2
    JPEG_QUALITY: int = 80
    DECODE_MAX_WORKERS: int = 4
    DECODE_TIMEOUT_SECONDS: float = 30.0

    # Fetching
    FETCH_TIMEOUT_SECONDS: float = 30.0
    FETCH_RETRIES: int = 2

    # Browsing sessions
    SESSION_TTL_SECONDS: int = 3600

    # Notifications
    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_API_KEY: str | None = None
    EMAIL_FROM: str = "Digital Catalogue <onboarding@resend.dev>"
    DEFAULT_RECIPIENT_EMAIL: str = "orders@example.com"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def model_post_init(self, __context) -> None:
        """Post initialization hook to set derived paths"""
        if isinstance(self.STORAGE_PATH, str):
            self.STORAGE_PATH = Path(self.STORAGE_PATH)

        self.CATALOGUES_PATH = Path(self.CATALOGUES_PATH) if self.CATALOGUES_PATH else self.STORAGE_PATH / "catalogues"

        self.create_storage_dirs()

    def create_storage_dirs(self) -> None:
        """Create necessary storage directories if they don't exist"""
        for path in [self.STORAGE_PATH, self.CATALOGUES_PATH]:
            path.mkdir(parents=True, exist_ok=True)

    def device_profile(self, device: str) -> dict:
        """Render scale and batch sizes for a client device class"""
        if device == "mobile":
            return {
                "scale": self.RENDER_SCALE_MOBILE,
                "initial_batch_size": self.INITIAL_BATCH_MOBILE,
                "batch_size": self.BATCH_SIZE_MOBILE,
            }
        return {
            "scale": self.RENDER_SCALE_DESKTOP,
            "initial_batch_size": self.INITIAL_BATCH_DESKTOP,
            "batch_size": self.BATCH_SIZE_DESKTOP,
        }

settings = Settings()
