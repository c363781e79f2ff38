"""Collapse raw matches into findings and count them by severity."""

from __future__ import annotations

import hashlib
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .language import Language
from .matcher import RawMatch
from .result import NO_ISSUES_TYPE, Finding, Location, Summary
from .rules import RuleCatalog

FINDING_PREFIX = "vuln"


def scan_fingerprint(code: str, language: Union[Language, str], file: Optional[str] = None) -> str:
    """Return a stable seed for finding ids derived from the scanned input."""

    digest = hashlib.sha256()
    digest.update(Language.from_tag(language).value.encode("utf-8"))
    digest.update(b"\0")
    if file is not None:
        digest.update(file.encode("utf-8"))
        digest.update(b"\0")
    digest.update(code.encode("utf-8"))
    return digest.hexdigest()[:16]


def make_finding_id(seed: str, rule_id: str, line: int, occurrence: int) -> str:
    payload = f"{seed}:{rule_id}:{line}:{occurrence}".encode("utf-8")
    return f"{FINDING_PREFIX}-{hashlib.sha256(payload).hexdigest()[:12]}"


def aggregate(
    raw_matches: Iterable[RawMatch],
    catalog: RuleCatalog,
    lines: Sequence[str],
    seed: str,
) -> List[Finding]:
    """Turn raw matches into one finding per ``(rule, line)``.

    Findings come back ordered by line, then by the rule's catalog position.
    The leftmost column of a rule on a line is kept. Metadata is copied
    verbatim from the rule and ``suggested_fix`` is left empty for the fix
    resolver.
    """

    leftmost: Dict[Tuple[str, int], RawMatch] = {}
    for raw in raw_matches:
        key = (raw.rule_id, raw.line)
        kept = leftmost.get(key)
        if kept is None or (raw.column or 0) < (kept.column or 0):
            leftmost[key] = raw

    ordered = sorted(
        leftmost.values(),
        key=lambda raw: (raw.line, catalog.position(raw.rule_id), raw.column or 0),
    )

    occurrences: Dict[str, int] = {}
    findings: List[Finding] = []
    for raw in ordered:
        rule = catalog.get(raw.rule_id)
        if rule is None:
            raise KeyError(f"Match references rule {raw.rule_id!r} missing from the catalog")
        occurrence = occurrences.get(rule.id, 0)
        occurrences[rule.id] = occurrence + 1
        findings.append(
            Finding(
                id=make_finding_id(seed, rule.id, raw.line, occurrence),
                rule_id=rule.id,
                type=rule.vulnerability_type,
                severity=rule.severity,
                location=Location(line=raw.line, column=raw.column),
                description=rule.description,
                matched_code=lines[raw.line - 1].rstrip(),
                cwe_id=rule.cwe_id,
                references=rule.references,
            )
        )
    return findings


def summarize(findings: Iterable[Finding]) -> Summary:
    summary = Summary()
    for finding in findings:
        if finding.type == NO_ISSUES_TYPE:
            continue
        summary.increment(finding.severity)
    return summary
