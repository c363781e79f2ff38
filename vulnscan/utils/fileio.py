"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML if the file exists, otherwise ``None``."""

    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def read_source_bytes(path: Path) -> bytes:
    """Return the raw file contents; decoding is left to the scan entry point."""

    with path.open("rb") as handle:
        return handle.read()
