"""
oti/config.py

Environment-based configuration.

Values come from the process environment, optionally seeded from a `.env`
file via python-dotenv. Variable names for the vault and the InfluxDB
database match the ones the tool has always used (VAULT_PATH, NOTES_DIR,
DB_HOST, DB_PORT, DB_NAME); OTI_* variables cover the newer options.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from oti.errors import ConfigError

STORE_INFLUX = "influx"
STORE_SUPABASE = "supabase"
STORES = (STORE_INFLUX, STORE_SUPABASE)


@dataclass(frozen=True)
class SyncConfig:
    vault_path: str
    notes_dir: str
    store: str = STORE_INFLUX
    measurement: str = ""

    # InfluxDB
    db_host: Optional[str] = None
    db_port: Optional[str] = None
    db_name: Optional[str] = None

    # Supabase
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    supabase_table: str = "tag_points"

    tag_marker: Optional[str] = None
    timezone: str = "UTC"
    batch_size: int = 500
    timeout: float = 10.0

    @property
    def influx_url(self) -> str:
        return f"http://{self.db_host}:{self.db_port}"

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True
    ) -> "SyncConfig":
        """
        Build a config from `environ` (defaults to os.environ).

        Raises
        ------
        ConfigError
            If a required variable is missing or a value cannot be parsed.
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        def required(name: str) -> str:
            value = environ.get(name)
            if not value:
                raise ConfigError(f"missing required environment variable {name}")
            return value

        store = environ.get("OTI_STORE", STORE_INFLUX).lower()
        if store not in STORES:
            raise ConfigError(f"OTI_STORE must be one of {', '.join(STORES)}, got {store!r}")

        vault_path = required("VAULT_PATH")
        notes_dir = required("NOTES_DIR")

        db_host = db_port = db_name = None
        supabase_url = supabase_key = None

        if store == STORE_INFLUX:
            db_host = required("DB_HOST")
            db_port = required("DB_PORT")
            db_name = required("DB_NAME")
        else:
            supabase_url = required("SUPABASE_URL")
            supabase_key = required("SUPABASE_KEY")

        # The measurement has historically been named after the database.
        measurement = environ.get("OTI_MEASUREMENT") or db_name
        if not measurement:
            raise ConfigError("OTI_MEASUREMENT is required when OTI_STORE=supabase")

        timezone = environ.get("OTI_TIMEZONE", "UTC")
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"unknown OTI_TIMEZONE {timezone!r}") from e

        try:
            batch_size = int(environ.get("OTI_BATCH_SIZE", "500"))
            timeout = float(environ.get("OTI_TIMEOUT", "10"))
        except ValueError as e:
            raise ConfigError(f"invalid numeric setting: {e}") from e

        if batch_size < 1:
            raise ConfigError("OTI_BATCH_SIZE must be at least 1")

        return cls(
            vault_path=vault_path,
            notes_dir=notes_dir,
            store=store,
            measurement=measurement,
            db_host=db_host,
            db_port=db_port,
            db_name=db_name,
            supabase_url=supabase_url,
            supabase_key=supabase_key,
            supabase_table=environ.get("OTI_SUPABASE_TABLE", "tag_points"),
            tag_marker=environ.get("OTI_TAG_MARKER") or None,
            timezone=timezone,
            batch_size=batch_size,
            timeout=timeout,
        )
