import os
from dotenv import load_dotenv

# Load environment variables from a .env file
load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Server and client settings, read once from the environment."""

    DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(BASE_DIR, 'webapp.db')}")
    SQL_ECHO = _env_flag("SQL_ECHO", False)

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 3001))
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Seed the three sample scans when the image table is empty
    SEED_TRAINING_DATA = _env_flag("SEED_TRAINING_DATA", True)
    DEFAULT_ADMIN_USERNAME = "admin"
    DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Client side
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3001")
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 10))
    NOTIFICATION_SECONDS = 5
    BACKUP_FILE_PREFIX = "edms-fdf-training-backup"
