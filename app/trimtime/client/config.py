"""Register-side settings, read from ``TRIMTIME_*`` environment variables.

A ``.env`` file is honoured when present. ``TRIMTIME_ENV`` picks a profile and
``TRIMTIME_API_BASE_URL_<PROFILE>`` overrides the shared base URL for it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

from dotenv import load_dotenv

T = TypeVar("T", int, float)

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ClientConfig:
    env_name: str
    api_base_url: str
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 15.0
    retries: int = 3
    retry_backoff_seconds: float = 0.3
    max_connections: int = 10
    verify_ssl: bool = True
    write_workers: int = 4

    @property
    def normalized_env(self) -> str:
        return self.env_name.lower().strip()


def _env(name: str) -> str:
    return (os.getenv(name) or "").strip()


def _number(name: str, kind: Callable[[str], T], default: T, minimum: T, *, strict: bool = False) -> T:
    raw = _env(name)
    if not raw:
        value = default
    else:
        try:
            value = kind(raw)
        except ValueError as exc:
            raise ConfigError(f"{name} must be a {kind.__name__}, got {raw!r}") from exc
    if value < minimum or (strict and value == minimum):
        bound = ">" if strict else ">="
        raise ConfigError(f"{name} must be {bound} {minimum}, got {value}")
    return value


def _flag(name: str, default: bool) -> bool:
    raw = _env(name)
    return raw.lower() in _TRUTHY if raw else default


def load_config(env_file: str | None = None) -> ClientConfig:
    load_dotenv(env_file)

    env_name = _env("TRIMTIME_ENV") or "dev"
    base_url = _env(f"TRIMTIME_API_BASE_URL_{env_name.upper()}") or _env("TRIMTIME_API_BASE_URL")
    if not base_url:
        raise ConfigError("TRIMTIME_API_BASE_URL is not set")

    overall = _number("TRIMTIME_TIMEOUT_SECONDS", float, 10.0, 0.0, strict=True)
    connect = _number("TRIMTIME_CONNECT_TIMEOUT_SECONDS", float, min(overall, 5.0), 0.0, strict=True)
    read = _number("TRIMTIME_READ_TIMEOUT_SECONDS", float, max(overall, connect), 0.0, strict=True)

    return ClientConfig(
        env_name=env_name,
        api_base_url=base_url.rstrip("/"),
        connect_timeout_seconds=connect,
        read_timeout_seconds=read,
        retries=_number("TRIMTIME_RETRIES", int, 3, 0),
        retry_backoff_seconds=_number("TRIMTIME_RETRY_BACKOFF_SECONDS", float, 0.3, 0.0),
        max_connections=_number("TRIMTIME_MAX_CONNECTIONS", int, 10, 1),
        verify_ssl=_flag("TRIMTIME_VERIFY_SSL", True),
        write_workers=_number("TRIMTIME_WRITE_WORKERS", int, 4, 1),
    )
