# src/server/config.py

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024  # 5MB, same limit as the portal upload form


def get_env(name: str, default: str | None = None) -> str | None:
    val = os.environ.get(name)
    if val is None or val.strip() == "":
        return default
    return val.strip()


class Settings:
    @property
    def storage_root(self) -> Path:
        return Path(get_env("HOSPITAL_STORAGE_ROOT", "storage"))

    @property
    def db_path(self) -> Path:
        explicit = get_env("HOSPITAL_DB_PATH")
        return Path(explicit) if explicit else self.storage_root / "server.db"

    @property
    def max_upload_bytes(self) -> int:
        raw = get_env("HOSPITAL_MAX_UPLOAD_BYTES")
        if raw is None:
            return DEFAULT_MAX_UPLOAD_BYTES
        try:
            return int(raw)
        except ValueError:
            logger.warning("Ignoring invalid HOSPITAL_MAX_UPLOAD_BYTES=%r", raw)
            return DEFAULT_MAX_UPLOAD_BYTES

    @property
    def ocr_lang(self) -> str:
        return get_env("HOSPITAL_OCR_LANG", "eng") or "eng"

    @property
    def log_level(self) -> str:
        return (get_env("HOSPITAL_LOG_LEVEL", "INFO") or "INFO").upper()


def get_settings() -> Settings:
    return Settings()
