"""Runtime settings read from the environment (and an optional .env file)."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_DB_PATH = 'biostats_app.db'
DEFAULT_COMPLETION_TIMEOUT = 60.0
# Session refresh every 10 minutes
DEFAULT_SESSION_REFRESH_SECONDS = 10 * 60


@dataclass(frozen=True)
class Settings:
    db_path: str = DEFAULT_DB_PATH
    completion_url: Optional[str] = None
    completion_api_key: Optional[str] = None
    completion_timeout: float = DEFAULT_COMPLETION_TIMEOUT
    log_level: str = 'INFO'
    session_refresh_seconds: int = DEFAULT_SESSION_REFRESH_SECONDS

    @property
    def completion_enabled(self):
        return bool(self.completion_url)


def _number(environ, name, default, cast):
    raw = environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def load_settings(environ=None, dotenv=True):
    """Builds Settings from SAIDISTAT_* variables.

    When `environ` is omitted the process environment is used, after loading
    a `.env` file from the working directory if one exists.
    """
    if environ is None:
        if dotenv:
            load_dotenv()
        environ = os.environ
    return Settings(
        db_path=environ.get('SAIDISTAT_DB_PATH') or DEFAULT_DB_PATH,
        completion_url=environ.get('SAIDISTAT_COMPLETION_URL') or None,
        completion_api_key=environ.get('SAIDISTAT_COMPLETION_API_KEY') or None,
        completion_timeout=_number(environ, 'SAIDISTAT_COMPLETION_TIMEOUT', DEFAULT_COMPLETION_TIMEOUT, float),
        log_level=(environ.get('SAIDISTAT_LOG_LEVEL') or 'INFO').upper(),
        session_refresh_seconds=_number(
            environ, 'SAIDISTAT_SESSION_REFRESH_SECONDS', DEFAULT_SESSION_REFRESH_SECONDS, int
        ),
    )
