"""Where claimtrack keeps its database."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .env import env_flag
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "claimtrack"
DEFAULT_DB_FILENAME: Final[str] = "claimtrack.db"
SQLITE_DRIVER: Final[str] = "sqlite+pysqlite"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Local data directory holding the default SQLite claim store."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, ensure: bool = True) -> Path:
        directory = self.resolve_data_dir()
        if ensure:
            directory.mkdir(parents=True, exist_ok=True)
        return directory / self.database_filename

    def database_uri(self) -> str:
        return f"{SQLITE_DRIVER}:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def _platform_data_home() -> Path:
    if sys.platform == "win32":
        local = os.getenv("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = os.getenv("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = os.getenv("CLAIMTRACK_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_home() / APP_DIR_NAME
    return StorageConfig(data_dir=data_dir)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file inside the data directory."""

    echo = env_flag("CLAIMTRACK_SQL_ECHO", default=False)
    uri = (os.getenv("DATABASE_URI") or "").strip()
    if not uri:
        return DatabaseConfig(uri=(storage or get_storage_config()).database_uri(), echo=echo)
    try:
        make_url(uri)
    except ArgumentError as exc:
        raise ConfigurationError(f"DATABASE_URI is not a valid database URL: {uri!r}") from exc
    return DatabaseConfig(uri=uri, echo=echo)
