"""Scan entry points: source text in, :class:`ScanReport` out.

The engine holds no state between calls. The catalog is the only shared
object and it is immutable, so calls may run in parallel, one per file.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Union

from .aggregator import aggregate, scan_fingerprint
from .errors import FileTooLargeError, InvalidInputError
from .fixes import attach_fixes
from .language import Language
from .matcher import iter_matches, split_lines
from .report import assemble
from .result import ScanReport
from .rules import RuleCatalog, default_catalog
from .utils import read_source_bytes

logger = logging.getLogger(__name__)


def decode_source(code: Union[str, bytes]) -> str:
    if isinstance(code, str):
        try:
            code.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise InvalidInputError(f"Source text cannot be encoded as UTF-8: {exc}") from exc
        return code
    if isinstance(code, (bytes, bytearray)):
        try:
            return bytes(code).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise InvalidInputError(f"Source is not valid UTF-8: {exc}") from exc
    raise InvalidInputError(f"Source must be text or UTF-8 bytes, got {type(code).__name__}")


def scan_code(
    code: Union[str, bytes],
    language: Union[Language, str],
    catalog: Optional[RuleCatalog] = None,
    *,
    seed: Optional[str] = None,
    file: Optional[str] = None,
    resolve_fixes: bool = True,
) -> ScanReport:
    """Scan one source text and return its report.

    ``seed`` scopes the finding ids; by default it is derived from the input so
    identical input always yields identical ids. ``file`` is copied into every
    finding location.
    """

    text = decode_source(code)
    catalog = catalog if catalog is not None else default_catalog()
    language = Language.from_tag(language)
    seed = seed or scan_fingerprint(text, language, file)

    lines = split_lines(text)
    findings = aggregate(iter_matches(lines, language, catalog), catalog, lines, seed)
    if file is not None:
        findings = [replace(finding, location=replace(finding.location, file=file)) for finding in findings]
    if resolve_fixes:
        findings = attach_fixes(findings, catalog)

    logger.debug(
        "Scanned %s as %s: %d lines, %d rules, %d findings",
        file or "<input>",
        language.value,
        len(lines),
        len(catalog.rules_for(language)),
        len(findings),
    )
    return assemble(findings)


def scan_file(
    path: Union[str, Path],
    catalog: Optional[RuleCatalog] = None,
    *,
    language: Union[Language, str, None] = None,
    resolve_fixes: bool = True,
    max_file_size_bytes: Optional[int] = None,
) -> ScanReport:
    """Read a single file and scan it, detecting the language from its extension.

    With ``max_file_size_bytes`` set, a larger file raises
    :class:`FileTooLargeError` before anything is read.
    """

    file_path = Path(path)
    if max_file_size_bytes is not None:
        size = file_path.stat().st_size
        if size > max_file_size_bytes:
            raise FileTooLargeError(f"{file_path}: {size} bytes exceeds limit of {max_file_size_bytes}")
    detected = Language.from_tag(language) if language else Language.from_path(file_path)
    return scan_code(
        read_source_bytes(file_path),
        detected,
        catalog,
        file=file_path.as_posix(),
        resolve_fixes=resolve_fixes,
    )
