# core/logger.py
import logging
import os
from pathlib import Path
from datetime import datetime

LOG_DIR = Path(os.getenv("LOG_DIR", Path(__file__).resolve().parent.parent / "logs"))
LOG_DIR.mkdir(parents=True, exist_ok=True)

def get_logger(name="Scheduler"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = logging.DEBUG if os.getenv("DEBUG", "false").lower() == "true" else logging.INFO
        logger.setLevel(level)
        fh = logging.FileHandler(LOG_DIR / f"{datetime.now().strftime('%Y-%m-%d')}.log")
        sh = logging.StreamHandler()
        formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s", "%H:%M:%S")
        fh.setFormatter(formatter)
        sh.setFormatter(formatter)
        logger.addHandler(fh)
        logger.addHandler(sh)
    return logger

if __name__ == "__main__":
    log = get_logger("Test")
    log.info("Logger works")
