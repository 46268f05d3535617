# core/structure.py
from pathlib import Path

from core.config import Config
from core.logger import LOG_DIR, get_logger

log = get_logger("Structure")

def ensure_structure():
    needed = [
        Path(Config.DB_PATH).parent,
        Path(Config.UPLOAD_DIR),
        LOG_DIR,
    ]
    for path in needed:
        path.mkdir(parents=True, exist_ok=True)
        log.info(f"Checked {path}")

if __name__ == "__main__":
    ensure_structure()
