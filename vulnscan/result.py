"""Findings, severity counts and the per-scan report."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
)

# Legacy placeholder record emitted by older callers when a file was clean.
NO_ISSUES_TYPE = "No Issues Detected"


class FindingStatus(str, Enum):
    OPEN = "open"
    FIXED = "fixed"
    IGNORED = "ignored"


@dataclass
class Location:
    """Position of a finding; ``file`` is filled in by whoever read the file."""

    line: int
    column: Optional[int] = None
    file: Optional[str] = None


@dataclass
class Finding:
    """Capture a single rule match on one source line."""

    id: str
    rule_id: str
    type: str
    severity: Severity
    location: Location
    description: str
    matched_code: str
    cwe_id: Optional[str] = None
    references: Tuple[str, ...] = ()
    suggested_fix: Optional[str] = None
    status: FindingStatus = FindingStatus.OPEN

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        data["status"] = self.status.value
        data["references"] = list(self.references)
        return data


@dataclass
class Summary:
    """Aggregate finding counts by severity."""

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    def increment(self, severity: Severity) -> None:
        attr = severity.value
        setattr(self, attr, getattr(self, attr) + 1)

    def count(self, severity: Severity) -> int:
        return getattr(self, severity.value)

    def to_dict(self) -> Dict[str, int]:
        data = {"total": self.total}
        data.update(asdict(self))
        return data

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, self.count(severity)) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(self.count(severity) for severity in SEVERITY_ORDER)


@dataclass
class ScanReport:
    """Findings of one scan (or several merged scans) with their severity counts."""

    summary: Summary = field(default_factory=Summary)
    findings: List[Finding] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
        }

    def exit_code(self, fail_on: Severity = Severity.MEDIUM) -> int:
        """Return 2 for blocking high/critical findings, 1 for lesser ones, else 0.

        Only findings at or above ``fail_on`` are considered.
        """

        counted = [severity for severity in SEVERITY_ORDER if severity >= fail_on and self.summary.count(severity)]
        if not counted:
            return 0
        if max(counted) >= Severity.HIGH:
            return 2
        return 1

    def passed(self, fail_on: Severity = Severity.MEDIUM) -> bool:
        return self.exit_code(fail_on) == 0

    def top_findings(self, limit: int = 5) -> List[Finding]:
        """Return the ``limit`` most severe findings, then by file and line."""

        severity_rank = {severity: idx for idx, severity in enumerate(SEVERITY_ORDER)}
        ordered = sorted(
            self.findings,
            key=lambda finding: (
                severity_rank[finding.severity],
                finding.location.file or "",
                finding.location.line,
                finding.id,
            ),
        )
        return ordered[:limit]


def format_summary_table(
    report: ScanReport,
    max_findings: int = 5,
    fail_on: Severity = Severity.MEDIUM,
) -> str:
    """Render counts, pass/fail status and the most severe findings as plain text."""

    lines: List[str] = []
    lines.append("Scan Summary")
    lines.append("=" * 40)
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    for severity, count in report.summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if report.passed(fail_on) else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Findings  : {report.summary.total}")

    findings = report.top_findings(max_findings)
    if findings:
        lines.append("")
        lines.append("Top Findings")
        lines.append("-" * 40)
        for finding in findings:
            location = f"{finding.location.file or '<input>'}:{finding.location.line}"
            lines.append(f"[{finding.severity.value}] {finding.id} {finding.type} ({finding.rule_id})")
            lines.append(f"  Location: {location}")
            lines.append(f"  Code    : {finding.matched_code.strip()}")
    else:
        lines.append("")
        lines.append("No issues detected.")
    return "\n".join(lines)
