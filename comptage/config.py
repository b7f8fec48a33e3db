"""Connection configuration.

Loads from a YAML file with environment variable overrides.
Pattern: COMPTAGE__{SECTION}__{KEY} overrides nested YAML keys.
Example: COMPTAGE__CONNECTION__PORT=5432

Without any file or override the client talks to the historical target:
postgres@localhost:5414/dalibo.
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

DEFAULT_CONFIG_PATH = "~/.config/clientcomptage.yml"
ENV_PREFIX = "COMPTAGE"


class PasswordPrompt(str, Enum):
    """When to ask for a password on the terminal."""
    DEFAULT = "default"  # only if the server asks for one
    ALWAYS = "always"
    NEVER = "never"


# --- Connection ---


class ConnectionConfig(BaseModel):
    host: str = "localhost"
    port: int = Field(default=5414, ge=1, le=65535)
    dbname: str = "dalibo"
    user: str = "postgres"
    password: Optional[str] = None  # None lets libpq use PGPASSWORD / .pgpass
    prompt_password: PasswordPrompt = PasswordPrompt.DEFAULT
    dsn: Optional[str] = None  # full URL, wins over the fields above
    application_name: str = "clientcomptage"

    @field_validator("dsn")
    @classmethod
    def dsn_is_url(cls, value: Optional[str]) -> Optional[str]:
        """Only URLs are accepted; libpq keyword strings (host=... dbname=...) are not."""
        if value is not None:
            try:
                make_url(value)
            except ArgumentError:
                raise ValueError(
                    "dsn must be a URL such as postgresql://user@host:5432/dbname"
                ) from None
        return value

    def url(self, password: Optional[str] = None) -> URL:
        """SQLAlchemy URL for the psycopg2 driver.

        An explicit *password* (from a prompt) replaces the configured one.
        """
        password = password if password is not None else self.password
        if self.dsn:
            url = make_url(self.dsn)
            if url.drivername in ("postgres", "postgresql"):
                url = url.set(drivername="postgresql+psycopg2")
            if password is not None:
                url = url.set(password=password)
            return url
        return URL.create(
            "postgresql+psycopg2",
            username=self.user,
            password=password,
            host=self.host,
            port=self.port,
            database=self.dbname,
        )


class AppConfig(BaseModel):
    connection: ConnectionConfig = ConnectionConfig()


def _apply_env_overrides(config_dict: dict, prefix: str = ENV_PREFIX) -> dict:
    """Apply environment variable overrides to config dict.

    Pattern: PREFIX__SECTION__KEY=value maps to config[section][key] = value.
    Values are left as strings; pydantic coerces them.
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}__"):
            continue
        parts = key[len(prefix) + 2 :].lower().split("__")
        target = config_dict
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = value
    return config_dict


def get_config_path() -> Path:
    return Path(os.getenv("COMPTAGE_CONFIG", DEFAULT_CONFIG_PATH)).expanduser()


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from YAML file with env overrides.

    Priority: env vars > YAML file > defaults
    """
    config_dict = {}

    # 1. Load YAML if exists
    path = Path(config_path).expanduser() if config_path else get_config_path()
    if path.exists():
        with open(path) as f:
            config_dict = yaml.safe_load(f) or {}

    # 2. Apply env overrides
    config_dict = _apply_env_overrides(config_dict)

    return AppConfig(**config_dict)
