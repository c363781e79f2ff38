"""Scanner configuration loaded from an optional YAML file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import yaml

from .errors import ConfigError
from .rules import RuleCatalog, default_catalog, load_catalog
from .severity import Severity
from .utils import read_yaml_file

DEFAULT_CONFIG_PATH = ".vulnscan.yaml"
DEFAULT_MAX_FILE_SIZE_BYTES = 500_000


@dataclass(frozen=True)
class ScanConfig:
    rules_path: Optional[str] = None
    disabled_rules: Tuple[str, ...] = ()
    fail_on: Severity = Severity.MEDIUM
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    extensions: Optional[Tuple[str, ...]] = None

    def build_catalog(self) -> RuleCatalog:
        """Return the catalog this configuration selects, minus disabled rules."""

        catalog = load_catalog(self.rules_path) if self.rules_path else default_catalog()
        if self.disabled_rules:
            catalog = catalog.without(self.disabled_rules)
        return catalog


def load_config(path: Union[str, Path, None] = None) -> ScanConfig:
    """Load ``path`` (or ``.vulnscan.yaml`` when it exists) into a :class:`ScanConfig`."""

    explicit = path is not None
    config_path = Path(path) if explicit else Path(DEFAULT_CONFIG_PATH)
    try:
        raw = read_yaml_file(config_path)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {config_path} is not valid YAML: {exc}") from exc

    if raw is None:
        if explicit:
            raise ConfigError(f"Config file not found: {config_path}")
        return ScanConfig()
    if not isinstance(raw, dict):
        raise ConfigError("Config must be a mapping")

    unknown = set(raw) - {"rules_path", "disabled_rules", "fail_on", "max_file_size_bytes", "extensions"}
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    try:
        fail_on = Severity.parse(raw.get("fail_on", Severity.MEDIUM.value))
    except ValueError as exc:
        raise ConfigError(f"'fail_on': {exc}") from exc

    max_size = raw.get("max_file_size_bytes", DEFAULT_MAX_FILE_SIZE_BYTES)
    if not isinstance(max_size, int) or isinstance(max_size, bool) or max_size <= 0:
        raise ConfigError("'max_file_size_bytes' must be a positive integer")

    extensions = raw.get("extensions")
    return ScanConfig(
        rules_path=_optional_str(raw.get("rules_path")),
        disabled_rules=tuple(_ensure_string_list(raw.get("disabled_rules"), "disabled_rules")),
        fail_on=fail_on,
        max_file_size_bytes=max_size,
        extensions=tuple(_normalize_extension(ext) for ext in _ensure_string_list(extensions, "extensions"))
        if extensions is not None
        else None,
    )


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _ensure_string_list(value: Any, key: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list of strings")
    return [str(item).strip() for item in value if str(item).strip()]


def _normalize_extension(value: str) -> str:
    text = value.lower()
    return text if text.startswith(".") else f".{text}"
