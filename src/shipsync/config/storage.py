"""Location of the settings and webhook-log database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATA_DIR_ENV: Final[str] = "SHIPSYNC_DATA_DIR"
DEFAULT_DB_FILENAME: Final[str] = "shipsync.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local SQLite fallback used when no ``DATABASE_URI`` is configured."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def database_path(self) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def get_storage_config() -> StorageConfig:
    configured = os.getenv(DATA_DIR_ENV, "").strip()
    if configured:
        return StorageConfig(data_dir=Path(configured))
    xdg_data = os.getenv("XDG_DATA_HOME", "").strip()
    base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return StorageConfig(data_dir=base / "shipsync")


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    uri = os.getenv(DATABASE_URI_ENV, "").strip()
    if uri:
        return DatabaseConfig(uri=uri)
    return DatabaseConfig(uri=(storage or get_storage_config()).database_uri())
