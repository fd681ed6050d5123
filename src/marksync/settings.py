"""Settings for a sync pass, read from a TOML file and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

import toml

from .raindrop import DEFAULT_BASE_URL

__all__ = ["Settings", "ENV_PREFIX"]

ENV_PREFIX = "MARKSYNC_"


def _to_datetime(name: str, value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Invalid timestamp for {name}: {value!r}")


def _to_number(kind):
    def convert(name: str, value: Any):
        try:
            return kind(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid {kind.__name__} for {name}: {value!r}")
    return convert


def _to_str(name: str, value: Any) -> str:
    return str(value)


@dataclass
class Settings:
    """Everything :class:`~marksync.manager.SyncManager` needs to run.

    Attributes:
        access_token: Raindrop.io API token.
        sync_location: Id of the target folder bookmarks are synced into.
        api_base_url: Raindrop.io REST endpoint.
        timeout: HTTP timeout in seconds.
        last_sync: Time of the last successful pass (kept in memory only).
        auto_sync_interval_minutes: Minimum minutes between passes; the
            ``sync`` command skips a pass younger than this.
    """
    access_token: str = ""
    sync_location: str = ""
    api_base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    last_sync: datetime | None = None
    auto_sync_interval_minutes: int = 5

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> Settings:
        """Build settings from loosely typed *values* (strings allowed).

        Raises:
            ValueError: Unknown key or a value that cannot be converted.
        """
        kwargs: dict[str, Any] = {}
        for key, value in values.items():
            convert = _CONVERTERS.get(key)
            if convert is None:
                raise ValueError(f"Unknown setting: {key}")
            kwargs[key] = convert(key, value)
        settings = cls(**kwargs)
        if settings.auto_sync_interval_minutes <= 0:
            raise ValueError("auto_sync_interval_minutes must be positive")
        return settings

    @classmethod
    def load(
        cls,
        path: str | os.PathLike[str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> Settings:
        """Read the ``[marksync]`` table of *path*, then ``MARKSYNC_*`` variables.

        Environment variables override the file.
        """
        values: dict[str, Any] = {}
        if path is not None:
            data = toml.load(os.fspath(path))
            values.update(data.get("marksync", {}))
        env = os.environ if env is None else env
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            if key in env:
                values[f.name] = env[key]
        return cls.from_dict(values)


_CONVERTERS = {
    "access_token": _to_str,
    "sync_location": _to_str,
    "api_base_url": _to_str,
    "timeout": _to_number(float),
    "last_sync": _to_datetime,
    "auto_sync_interval_minutes": _to_number(int),
}
