"""
Configuration Loader (``split_kernel.config``).

Responsibility
--------------
Loads the kernel's runtime settings from an optional YAML file, applies
``SPLIT_KERNEL_*`` environment overrides, and returns a frozen
``KernelConfig``. Services receive the config object; they never read
files or the environment themselves.

Invariants enforced
-------------------
* Every value is validated; a bad value raises ``ConfigurationError``
  naming the offending key. There are no silent fallbacks for values that
  were supplied.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective settings for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or invalid value  -> ``ConfigurationError``.

Example file::

    currency: EUR
    decimal_places: 2
    member_policy: strict
    history_limit: 5
    local_member_alias: me
    log_level: INFO
    database_url: sqlite:///split.db
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from split_kernel.domain.ledger import MemberPolicy
from split_kernel.exceptions import ConfigurationError

ENV_PREFIX = "SPLIT_KERNEL_"


@dataclass(frozen=True)
class KernelConfig:
    """Effective settings for one process."""

    currency: str = "USD"
    decimal_places: int = 2
    member_policy: MemberPolicy = MemberPolicy.STRICT
    history_limit: int | None = 5
    local_member_alias: str = "me"
    log_level: str = "INFO"
    database_url: str = "sqlite:///:memory:"

    def __post_init__(self) -> None:
        if not (isinstance(self.currency, str) and len(self.currency) == 3 and self.currency.isalpha()):
            raise ConfigurationError("currency", f"expected a 3-letter code, got {self.currency!r}")
        object.__setattr__(self, "currency", self.currency.upper())

        if not isinstance(self.decimal_places, int) or not 0 <= self.decimal_places <= 4:
            raise ConfigurationError("decimal_places", f"expected 0-4, got {self.decimal_places!r}")

        try:
            object.__setattr__(self, "member_policy", MemberPolicy(self.member_policy))
        except ValueError as e:
            raise ConfigurationError("member_policy", str(e)) from e

        if self.history_limit is not None and (
            not isinstance(self.history_limit, int) or self.history_limit < 0
        ):
            raise ConfigurationError("history_limit", f"expected a non-negative int, got {self.history_limit!r}")

        level = str(self.log_level).upper()
        if level not in logging.getLevelNamesMapping():
            raise ConfigurationError("log_level", f"unknown level {self.log_level!r}")
        object.__setattr__(self, "log_level", level)

        if not self.database_url:
            raise ConfigurationError("database_url", "must not be empty")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top-level YAML value must be a mapping")
    return data


def parse_config(data: Mapping[str, Any]) -> KernelConfig:
    """Build a KernelConfig from a plain mapping (e.g. parsed YAML)."""
    known = {f.name for f in fields(KernelConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(unknown[0], "unknown configuration key")
    return KernelConfig(**data)


def _coerce_env(name: str, raw: str) -> Any:
    if name == "decimal_places":
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigurationError(name, f"expected an int, got {raw!r}") from e
    if name == "history_limit":
        if raw.strip().lower() in ("", "none", "all"):
            return None
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigurationError(name, f"expected an int or 'none', got {raw!r}") from e
    return raw


def apply_env_overrides(config: KernelConfig, env: Mapping[str, str]) -> KernelConfig:
    """Override fields from ``SPLIT_KERNEL_<FIELD>`` variables."""
    overrides: dict[str, Any] = {}
    for f in fields(KernelConfig):
        key = ENV_PREFIX + f.name.upper()
        if key in env:
            overrides[f.name] = _coerce_env(f.name, env[key])
    return replace(config, **overrides) if overrides else config


def load_config(
    path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> KernelConfig:
    """
    Effective configuration: defaults <- YAML file <- environment.

    ``path`` defaults to ``$SPLIT_KERNEL_CONFIG`` when set. ``env`` defaults
    to ``os.environ``.
    """
    env = os.environ if env is None else env
    if path is None and env.get(ENV_PREFIX + "CONFIG"):
        path = env[ENV_PREFIX + "CONFIG"]

    config = parse_config(load_yaml_file(Path(path))) if path is not None else KernelConfig()
    return apply_env_overrides(config, env)


def compute_checksum(config: KernelConfig) -> str:
    """Deterministic SHA-256 of the effective settings."""
    payload = {k: (v.value if isinstance(v, MemberPolicy) else v) for k, v in asdict(config).items()}
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
