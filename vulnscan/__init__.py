"""Pattern-based security scanner for source code."""

from importlib.metadata import version, PackageNotFoundError

from .engine import scan_code, scan_file
from .language import Language
from .result import Finding, ScanReport
from .severity import Severity

try:
    __version__ = version("vulnscan")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0-dev"

__all__ = [
    "__version__",
    "Finding",
    "Language",
    "ScanReport",
    "Severity",
    "scan_code",
    "scan_file",
]
