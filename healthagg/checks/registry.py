"""Check registry — loads config.yml into an immutable, typed configuration.

The configuration is read once at startup and shared read-only by every
request handler. Probe contents (URLs, timeouts) are not validated here; a
bad URL only shows up later as a transport failure.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_LISTEN_ADDRESS = ":9001"
DEFAULT_PROBE_TIMEOUT = 1.0  # seconds


# ── Errors ───────────────────────────────────────────────────────────────────


class ConfigError(Exception):
    """Base class for configuration loading failures."""


class ConfigIOError(ConfigError):
    """Raised when the config file cannot be read."""


class ConfigParseError(ConfigError):
    """Raised when the config file is not a valid configuration document."""


# ── Durations ────────────────────────────────────────────────────────────────

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a duration string like ``"2s"``, ``"500ms"`` or ``"1m30s"`` into seconds."""
    s = text.strip()
    if not s:
        raise ValueError("empty duration")

    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]

    if s == "0":
        return 0.0

    total = 0.0
    pos = 0
    for match in _DURATION_PART.finditer(s):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(s):
        raise ValueError(f"invalid duration {text!r}")
    return sign * total


# ── Data models ──────────────────────────────────────────────────────────────


class Probe(BaseModel):
    """A single HTTP status check against one URL."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    name: str = ""
    url: str = ""
    expected_status: int = 0
    timeout: float = 0.0  # seconds; 0 means "use the default"

    @field_validator("timeout", mode="before")
    @classmethod
    def _parse_timeout(cls, value: Any) -> float:
        if value is None:
            return 0.0
        if isinstance(value, bool):
            raise ValueError("timeout must be a duration, not a boolean")
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            return parse_duration(value)
        raise ValueError(f"unsupported timeout value: {value!r}")

    @property
    def effective_timeout(self) -> float:
        """Configured timeout, or one second when unset / non-positive."""
        return self.timeout if self.timeout > 0 else DEFAULT_PROBE_TIMEOUT


class Configuration(BaseModel):
    """Listen address plus named groups of probes, loaded once at startup."""

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    listen_address: str = DEFAULT_LISTEN_ADDRESS
    checks: dict[str, tuple[Probe, ...]] = Field(default_factory=dict)

    @field_validator("listen_address", mode="before")
    @classmethod
    def _default_listen_address(cls, value: Any) -> Any:
        return value or DEFAULT_LISTEN_ADDRESS

    @field_validator("checks", mode="before")
    @classmethod
    def _default_checks(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            groups: dict[Any, Any] = {}
            for name, probes in value.items():
                # YAML reads `2024:` as an int key
                if isinstance(name, (int, float)) and not isinstance(name, bool):
                    name = str(name)
                if name in groups:
                    raise ValueError(f"duplicate group name {name!r}")
                # `group:` with no entries parses as null
                groups[name] = probes or ()
            return groups
        return value

    def get(self, group: str) -> tuple[Probe, ...] | None:
        return self.checks.get(group)

    def group_names(self) -> list[str]:
        return list(self.checks)

    def total_probes(self) -> int:
        return sum(len(probes) for probes in self.checks.values())


# ── Loader ───────────────────────────────────────────────────────────────────


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate mapping keys instead of keeping the last one."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, (str, int, float, bool)) and key is not None:
                continue  # unhashable / exotic keys are reported by the base constructor
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    f"found duplicate key {key!r}", key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def load_config(path: str | Path) -> Configuration:
    """Read and parse a YAML config file.

    Raises ``ConfigIOError`` if the file cannot be read and
    ``ConfigParseError`` if its contents are not a valid configuration.
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ConfigIOError(f"Could not read config file {path}: {e}") from e

    try:
        raw = yaml.load(data, Loader=_UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse config file {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigParseError(
            f"Failed to parse config file {path}: expected a mapping at the top level, "
            f"got {type(raw).__name__}"
        )

    try:
        config = Configuration.model_validate(raw)
    except ValidationError as e:
        raise ConfigParseError(f"Failed to parse config file {path}: {e}") from e

    _warn_suspicious(config)
    return config


def _warn_suspicious(config: Configuration) -> None:
    for group, probes in config.checks.items():
        dupes = [name for name, n in Counter(p.name for p in probes).items() if n > 1]
        for name in dupes:
            logger.warning("Group %s has more than one probe named %r", group, name)
        for probe in probes:
            if probe.expected_status == 0:
                logger.warning(
                    "Probe %s/%s has no expected_status and will always fail", group, probe.name,
                )
