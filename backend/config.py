"""
Calibration Lab Records - System Configuration
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Asset ID allocation settings (fallback code, retry
                      attempts); report URL scheme
v1.0.0 (2026-10-05): Initial configuration module
"""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path
import os


class Settings(BaseSettings):
    """System-wide configuration"""

    # Application
    APP_NAME: str = "Calibration Lab Records"
    APP_VERSION: str = "1.1.0"
    DEBUG: bool = False

    # API Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_WORKERS: int = 1
    CORS_ORIGINS: List[str] = ["*"]

    # SQLite Configuration
    SQLITE_DB_PATH: str = str(Path(__file__).parent / "data" / "calibration_lab.db")

    # File Paths
    DATA_DIR: str = str(Path(__file__).parent / "data")
    LOGS_DIR: str = str(Path(__file__).parent / "logs")

    # Asset ID Allocation
    ASSET_ID_FALLBACK_CODE: str = "1"  # used when a UUID is passed as customer code
    ASSET_ID_MAX_ATTEMPTS: int = 3  # insert retries on duplicate asset_id

    # Report links stored on lab_assets.file_url
    ASSET_URL_SCHEME: str = "report:"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Singleton instance
settings = Settings()


def init_directories():
    """Create necessary directories if they don't exist"""
    for directory in [settings.DATA_DIR, settings.LOGS_DIR]:
        os.makedirs(directory, exist_ok=True)


if __name__ == "__main__":
    print(f"{settings.APP_NAME} Configuration v{settings.APP_VERSION}")
    print(f"SQLite: {settings.SQLITE_DB_PATH}")
    print(f"Logs: {settings.LOGS_DIR}")
    print(f"Asset ID fallback code: {settings.ASSET_ID_FALLBACK_CODE}")
    print(f"Asset ID insert attempts: {settings.ASSET_ID_MAX_ATTEMPTS}")
