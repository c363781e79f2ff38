"""Compose scan reports from resolved findings."""

from __future__ import annotations

from typing import Iterable

from .aggregator import summarize
from .result import NO_ISSUES_TYPE, Finding, ScanReport


def assemble(findings: Iterable[Finding]) -> ScanReport:
    """Build a report, keeping finding order; counts come from :func:`summarize`.

    A clean scan is an empty findings list; legacy "No Issues Detected"
    placeholder records are dropped rather than reported.
    """

    kept = [finding for finding in findings if finding.type != NO_ISSUES_TYPE]
    return ScanReport(summary=summarize(kept), findings=kept)


def merge_reports(reports: Iterable[ScanReport]) -> ScanReport:
    """Concatenate per-file reports into a single report."""

    return assemble(finding for report in reports for finding in report.findings)
