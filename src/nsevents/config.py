from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "NSEVENTS_CONFIG_FILE"


def _as_bool(value: Any) -> bool:
    """Interpret common truthy/falsey spellings.

    Accepts True/False, 1/0, "true"/"false", "yes"/"no", "on"/"off"
    (case-insensitive). Any other string is rejected.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in {"1", "true", "yes", "y", "on"}:
            return True
        if v in {"0", "false", "no", "n", "off"}:
            return False
    raise ConfigError(f"Cannot interpret {value!r} as a boolean")


def _as_optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value.lower() in {"", "none", "null"}:
            return None
    if isinstance(value, bool):
        raise ConfigError(f"Expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Expected an integer, got {value!r}") from exc


_CASTERS = {
    "queue_unhandled": _as_bool,
    "max_pending": _as_optional_int,
}

_ENV_KEYS = {
    "NSEVENTS_QUEUE_UNHANDLED": "queue_unhandled",
    "NSEVENTS_MAX_PENDING": "max_pending",
}


@dataclass
class EmitterConfig:
    """Settings applied to a new :class:`~nsevents.emitter.EventEmitter`.

    Sources, lowest to highest precedence:
    - Defaults below
    - A YAML file (explicit path, or NSEVENTS_CONFIG_FILE)
    - Environment variables NSEVENTS_QUEUE_UNHANDLED / NSEVENTS_MAX_PENDING

    Example file::

        queue_unhandled: true
        max_pending: 500
    """

    queue_unhandled: bool = False
    # None means the pending queue is unbounded
    max_pending: Optional[int] = None

    def validate(self) -> None:
        if self.max_pending is not None and self.max_pending < 1:
            raise ConfigError(f"max_pending must be a positive integer or None, got {self.max_pending}")

    def as_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmitterConfig":
        unknown = sorted(set(data) - set(_CASTERS))
        if unknown:
            logger.warning("Ignoring unknown emitter config keys: %s", ", ".join(unknown))
        values = {key: _CASTERS[key](value) for key, value in data.items() if key in _CASTERS}
        config = cls(**values)
        config.validate()
        return config

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
        env = os.environ if env is None else env
        out: Dict[str, Any] = {}
        for env_key, field_name in _ENV_KEYS.items():
            if env.get(env_key, "") != "":
                out[field_name] = env[env_key]
                logger.debug("Emitter config override from %s", env_key)
        return out

    @staticmethod
    def from_yaml_file(path: Union[str, Path]) -> Dict[str, Any]:
        path = Path(path)
        if not path.exists():
            logger.debug("Emitter config file not found: %s", path)
            return {}
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}, got {type(raw).__name__}")
        logger.info("Loaded emitter config from %s", path)
        return raw

    @classmethod
    def from_sources(
        cls,
        *,
        env: Optional[Mapping[str, str]] = None,
        file_path: Optional[Union[str, Path]] = None,
    ) -> "EmitterConfig":
        env = os.environ if env is None else env
        data: Dict[str, Any] = {}
        if file_path is None and env.get(CONFIG_FILE_ENV):
            file_path = env[CONFIG_FILE_ENV]
        if file_path is not None:
            data.update(cls.from_yaml_file(Path(file_path).expanduser()))
        data.update(cls.from_env(env))
        return cls.from_dict(data)
