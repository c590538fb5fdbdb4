"""Configuration management for the IPA signing service."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
    )

    ENV: str = "local"
    SERVICE_NAME: str = "ipasign"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    DOMAIN: str = ""  # Public base URL, defaults to http://localhost:{PORT}
    ALLOWED_ORIGINS: str = ""  # Comma-separated, empty = DOMAIN only

    # Upload Constraints
    MAX_FILE_SIZE: int = 2 * 1024 * 1024 * 1024  # bytes per uploaded file

    # Directories
    UPLOAD_DIR: str = "uploads"
    OUTPUT_DIR: str = "output"

    # zsign Configuration
    ZSIGN_PATH: str = "zsign"
    MAX_CONCURRENT_SIGNINGS: int = 4  # 0 = unbounded
    SIGN_TIMEOUT_SECONDS: float | None = None  # None = wait for zsign to exit

    # OTA manifest metadata (not read from the package)
    MANIFEST_BUNDLE_ID: str = "com.example.app"
    MANIFEST_BUNDLE_VERSION: str = "1.0"
    MANIFEST_TITLE: str = "Signed App"

    @property
    def public_domain(self) -> str:
        """Public base URL without trailing slash."""
        domain = self.DOMAIN or f"http://localhost:{self.PORT}"
        return domain.rstrip("/")

    @property
    def allowed_origins(self) -> list[str]:
        """Parse ALLOWED_ORIGINS into a list, falling back to the public domain."""
        if not self.ALLOWED_ORIGINS:
            return [self.public_domain]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def upload_path(self) -> Path:
        return Path(self.UPLOAD_DIR)

    @property
    def output_path(self) -> Path:
        return Path(self.OUTPUT_DIR)

    @property
    def max_request_bytes(self) -> int:
        """Largest acceptable multipart body: three files plus form overhead."""
        return 3 * self.MAX_FILE_SIZE + 1024 * 1024


# Singleton settings instance
settings = Settings()
