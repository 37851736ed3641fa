# src/server/storage.py

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .errors import StorageFailure


@dataclass(frozen=True)
class Storage:
    root: Path
    uploads: Path  # storage/uploads/<user_id>/<ts>_<name>
    results: Path


def init_storage(root: str | Path = "storage") -> Storage:
    root = Path(root)
    uploads = root / "uploads"
    results = root / "results"

    for p in [root, uploads, results]:
        p.mkdir(parents=True, exist_ok=True)

    return Storage(root=root, uploads=uploads, results=results)


def safe_filename(name: str) -> str:
    base = Path(name or "upload").name
    base = re.sub(r"[^A-Za-z0-9._-]+", "_", base).strip("._")
    return base or "upload"


def save_upload(storage: Storage, user_id: str, filename: str, data: bytes) -> Path:
    user_dir = storage.uploads / safe_filename(user_id)
    dst = user_dir / f"{int(time.time() * 1000)}_{safe_filename(filename)}"
    try:
        user_dir.mkdir(parents=True, exist_ok=True)
        dst.write_bytes(data)
    except OSError as e:
        raise StorageFailure(f"Could not store upload '{filename}': {e}") from e
    return dst


def write_json(path: Path, obj: Dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(obj, indent=2, ensure_ascii=False), encoding="utf-8")
    except OSError as e:
        raise StorageFailure(f"Could not write {path}: {e}") from e


def read_json(path: Path) -> Dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))
