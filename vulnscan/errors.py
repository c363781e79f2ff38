"""Exception types raised by the scanner."""

from __future__ import annotations


class VulnscanError(Exception):
    """Base class for scanner errors."""


class CatalogError(VulnscanError):
    """A rule definition is malformed; the catalog cannot be built."""


class InvalidInputError(VulnscanError):
    """The code handed to a scan is not valid UTF-8 text."""


class FileTooLargeError(InvalidInputError):
    """A source file is bigger than the configured size limit."""


class ConfigError(VulnscanError, ValueError):
    """The scanner configuration file is missing or holds invalid values."""
