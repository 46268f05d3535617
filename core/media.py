"""Storage helpers for image attachments owned by scheduled posts."""
from __future__ import annotations

import time
from pathlib import Path

from core.config import Config
from core.logger import get_logger

log = get_logger("Media")


def save_image(data: bytes, original_name: str, upload_dir: Path | None = None) -> str:
    """Write uploaded bytes as ``<epoch-millis>.<ext>`` and return the absolute path."""

    target_dir = Path(upload_dir or Config.UPLOAD_DIR)
    target_dir.mkdir(parents=True, exist_ok=True)

    extension = Path(original_name).suffix.lstrip(".").lower() or "jpg"
    stamp = int(time.time() * 1000)
    path = target_dir / f"{stamp}.{extension}"
    # Two uploads inside the same millisecond must not overwrite each other.
    while path.exists():
        stamp += 1
        path = target_dir / f"{stamp}.{extension}"

    path.write_bytes(data)
    log.info(f"Stored attachment → {path}")
    return str(path.resolve())


def discard_image(image_path: str | None) -> None:
    """Delete an attachment that no post references anymore."""

    if not image_path:
        return
    try:
        Path(image_path).unlink()
        log.info(f"Removed attachment {image_path}")
    except FileNotFoundError:
        log.warning(f"Attachment already gone: {image_path}")
    except OSError as exc:
        log.error(f"Error deleting image file {image_path}: {exc}")

