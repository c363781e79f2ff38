"""Utility helpers for the scanner."""

from .fileio import read_source_bytes, read_yaml_file
from .code import iter_code_files

__all__ = [
    "read_source_bytes",
    "read_yaml_file",
    "iter_code_files",
]
