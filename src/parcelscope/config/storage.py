"""Where parcelscope keeps its queue database and HTTP response cache."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

DATA_DIR_ENV: Final[str] = "PARCELSCOPE_DATA_DIR"
DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
QUEUE_DB_FILENAME: Final[str] = "queue.db"
HTTP_CACHE_FILENAME: Final[str] = "http_cache.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """A data directory holding the sqlite queue and the parcel API cache."""

    data_dir: Path

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, ensure: bool = True) -> Path:
        return self._file(QUEUE_DB_FILENAME, ensure=ensure)

    def http_cache_path(self, *, ensure: bool = True) -> Path:
        return self._file(HTTP_CACHE_FILENAME, ensure=ensure)

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"

    def _file(self, name: str, *, ensure: bool) -> Path:
        directory = self.resolve_data_dir()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / name


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    @property
    def is_sqlite(self) -> bool:
        return self.uri.startswith("sqlite")


def _platform_data_home() -> Path:
    if os.name == "nt":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    explicit = optional_env_var(DATA_DIR_ENV)
    data_dir = Path(explicit) if explicit else _platform_data_home() / "parcelscope"
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """Return the queue database URI; ``DATABASE_URI`` wins over the data dir."""

    uri = optional_env_var(DATABASE_URI_ENV)
    if uri is None:
        uri = (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri)
