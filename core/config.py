# core/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

# Load .env from project root
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(ENV_PATH)


class Config:
    # Signal gateway (signal-cli-rest-api)
    SIGNAL_API_URL = os.getenv("SIGNAL_API_URL", "http://localhost:8080").rstrip("/")
    SIGNAL_NUMBER = os.getenv("SIGNAL_NUMBER", "")
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))

    # Storage
    DB_PATH = Path(os.getenv("DB_PATH", str(BASE_DIR / "data" / "scheduler.db")))
    DB_URL = os.getenv("DB_URL", f"sqlite:///{DB_PATH}")
    UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads")))

    # Dispatcher
    POLL_INTERVAL_SECONDS = int(os.getenv("POLL_INTERVAL_SECONDS", "60"))

    # General
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    BASE_DIR = BASE_DIR


if __name__ == "__main__":
    # Sanity check
    print("Config loaded from:", ENV_PATH)
    print("Database URL:", Config.DB_URL)
    print("Signal gateway:", Config.SIGNAL_API_URL)
