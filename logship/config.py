from collections.abc import Mapping
from dataclasses import dataclass
import os
import re

from dotenv import load_dotenv


load_dotenv()

TOKEN_ENV = "LogzioToken"
LISTENER_ENV = "LogzioListener"
DEBUG_ENV = "Debug"
BACKUP_CONNECTION_ENV = "LogsStorageConnectionString"

TOKEN_PATTERN = re.compile(r"[a-zA-Z]{32}")

ALLOWED_LISTENERS = frozenset(
    {
        "https://listener.logz.io:8071",
        "https://listener-au.logz.io:8071",
        "https://listener-ca.logz.io:8071",
        "https://listener-eu.logz.io:8071",
        "https://listener-nl.logz.io:8071",
        "https://listener-uk.logz.io:8071",
        "https://listener-wa.logz.io:8071",
    }
)


class ConfigError(ValueError):
    pass


class InvalidToken(ConfigError):
    pass


class InvalidEndpoint(ConfigError):
    pass


class MissingBackupConfig(ConfigError):
    pass


@dataclass(frozen=True)
class Settings:
    app_name: str
    log_level: str
    request_timeout_seconds: float
    max_send_attempts: int
    initial_backoff_seconds: float
    max_payload_bytes: int
    backup_container: str
    backup_oversized_payloads: bool


@dataclass(frozen=True)
class OperatingConfig:
    token: str
    endpoint_url: str
    debug: str | None
    backup_connection: str

    @property
    def debug_enabled(self) -> bool:
        return (self.debug or "").strip().lower() == "true"


def _env_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "logship"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10")),
        max_send_attempts=int(os.getenv("MAX_SEND_ATTEMPTS", "4")),
        initial_backoff_seconds=float(os.getenv("INITIAL_BACKOFF_SECONDS", "2")),
        max_payload_bytes=int(os.getenv("MAX_PAYLOAD_BYTES", "10000000")),
        backup_container=os.getenv("BACKUP_CONTAINER", "logsbackup"),
        backup_oversized_payloads=_env_bool(os.getenv("BACKUP_OVERSIZED_PAYLOADS")),
    )


def validate_config(environ: Mapping[str, str] | None = None) -> OperatingConfig:
    env = os.environ if environ is None else environ

    token = env.get(TOKEN_ENV)
    if not token or not TOKEN_PATTERN.search(token):
        raise InvalidToken(f"{TOKEN_ENV} must contain at least 32 contiguous letters")

    endpoint_url = env.get(LISTENER_ENV)
    if endpoint_url not in ALLOWED_LISTENERS:
        raise InvalidEndpoint(f"{LISTENER_ENV} must be one of the known listener urls, got {endpoint_url!r}")

    backup_connection = env.get(BACKUP_CONNECTION_ENV)
    if not backup_connection:
        raise MissingBackupConfig(f"{BACKUP_CONNECTION_ENV} must be provided")

    return OperatingConfig(
        token=token,
        endpoint_url=endpoint_url,
        debug=env.get(DEBUG_ENV),
        backup_connection=backup_connection,
    )
