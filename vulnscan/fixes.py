"""Deterministic remediation text for findings, and line-level fix application."""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from .result import Finding
from .rules import FixTemplate, RuleCatalog, default_catalog

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

GENERIC_FIX = "\n".join(
    [
        "No specific remediation is registered for this issue type. General checklist:",
        "- Treat every value that crosses a trust boundary as untrusted and validate it against an allow-list.",
        "- Keep data and code apart: bind parameters, encode output for its context, avoid building commands from strings.",
        "- Remove secrets from source and load them from the environment or a secrets manager.",
        "- Prefer vetted library functions over hand-written parsing, escaping or cryptography.",
        "- Add a regression test that reproduces the issue before changing the code.",
    ]
)


def resolve_fix(finding: Finding, catalog: Optional[RuleCatalog] = None) -> str:
    """Return remediation text for ``finding``; never empty, never raises."""

    catalog = catalog if catalog is not None else default_catalog()
    template = _lookup_template(finding, catalog)
    if template is None:
        return GENERIC_FIX
    return render_fix(template, finding.matched_code)


def attach_fixes(findings: Iterable[Finding], catalog: Optional[RuleCatalog] = None) -> List[Finding]:
    """Return copies of ``findings`` with ``suggested_fix`` filled in."""

    return [replace(finding, suggested_fix=resolve_fix(finding, catalog)) for finding in findings]


def render_fix(template: FixTemplate, matched_code: Optional[str] = None) -> str:
    parts = [template.rationale]
    if matched_code and matched_code.strip():
        parts.append("Flagged code:\n" + _indent(matched_code.strip()))
    if template.before:
        parts.append("Before:\n" + _indent(template.before))
    if template.after:
        parts.append("After:\n" + _indent(template.after))
    return "\n\n".join(parts)


def _lookup_template(finding: Finding, catalog: RuleCatalog) -> Optional[FixTemplate]:
    rule = catalog.get(finding.rule_id) if finding.rule_id else None
    if rule is not None and rule.vulnerability_type == finding.type:
        return rule.fix_template
    return catalog.fix_template_for(finding.type)


def _indent(text: str) -> str:
    return textwrap.indent(text, "    ")


# ----------------------------------------------------------------------
# Fix application
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class FixEdit:
    """Replace the whole of 1-based ``line`` with ``replacement``."""

    line: int
    replacement: str


def apply_fixes(code: str, edits: Iterable[FixEdit]) -> str:
    """Apply line replacements to ``code``, bottom-up.

    Lines are numbered the way the matcher numbers them: ``\\r\\n``, ``\\r`` and
    ``\\n`` each end a line. Edits pointing outside the file are ignored. When
    several edits target the same line the last one given wins. Every line
    keeps its own terminator.
    """

    lines, endings = _split_keeping_endings(code)
    default_newline = "\r\n" if "\r\n" in code else "\n"

    latest: Dict[int, str] = {}
    for edit in edits:
        latest[edit.line] = edit.replacement
    for line_number in sorted(latest, reverse=True):
        index = line_number - 1
        if not 0 <= index < len(lines):
            continue
        ending = endings[index]
        pieces = _LINE_BREAK.split(latest[line_number])
        lines[index : index + 1] = pieces
        endings[index : index + 1] = [ending or default_newline] * (len(pieces) - 1) + [ending]

    return "".join(line + ending for line, ending in zip(lines, endings))


def _split_keeping_endings(code: str) -> Tuple[List[str], List[str]]:
    lines: List[str] = []
    endings: List[str] = []
    start = 0
    for brk in _LINE_BREAK.finditer(code):
        lines.append(code[start : brk.start()])
        endings.append(brk.group(0))
        start = brk.end()
    if start < len(code):
        lines.append(code[start:])
        endings.append("")
    return lines, endings
