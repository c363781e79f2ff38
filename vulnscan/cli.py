"""Command-line entry point for the vulnscan scanner."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional

from .config import ScanConfig, load_config
from .engine import scan_file
from .errors import CatalogError, ConfigError, FileTooLargeError, InvalidInputError
from .report import merge_reports
from .result import ScanReport, format_summary_table
from .rules import RuleCatalog
from .severity import Severity
from .utils import iter_code_files

DEFAULT_SOURCE_DIRS = (".",)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vulnscan",
        description="Pattern-based security scanner for source code",
    )
    parser.add_argument(
        "--source",
        "-s",
        dest="source_paths",
        action="append",
        default=[],
        help="File or directory to scan (repeatable, defaults to the current directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file (defaults to .vulnscan.yaml when present).",
    )
    parser.add_argument(
        "--rules",
        default=None,
        help="Alternate rule catalog YAML file; overrides rules_path from the config.",
    )
    parser.add_argument(
        "--language",
        default=None,
        help="Force a language tag for every file instead of detecting it from the extension.",
    )
    parser.add_argument(
        "--fail-on",
        choices=[severity.value for severity in Severity],
        default=None,
        help="Lowest severity that makes the exit code non-zero (config default: medium).",
    )
    parser.add_argument(
        "--format",
        choices=["json"],
        default="json",
        help="Structured report format (json only).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Write the JSON report to this path instead of stdout.",
    )
    parser.add_argument(
        "--no-fixes",
        action="store_true",
        help="Skip remediation text in the report.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort when a file is not valid UTF-8 instead of skipping it.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug details to stderr.",
    )
    return parser


def run_scan(
    source_paths: Iterable[str],
    config: ScanConfig,
    catalog: RuleCatalog,
    language: Optional[str] = None,
    resolve_fixes: bool = True,
    strict: bool = False,
) -> ScanReport:
    """Scan every file under ``source_paths`` one at a time and merge the reports."""

    reports: List[ScanReport] = []
    for path in iter_code_files(source_paths, extensions=config.extensions):
        try:
            reports.append(
                scan_file(
                    path,
                    catalog,
                    language=language,
                    resolve_fixes=resolve_fixes,
                    max_file_size_bytes=config.max_file_size_bytes,
                )
            )
        except FileTooLargeError as exc:
            logger.warning("Skipping %s", exc)
        except InvalidInputError as exc:
            if strict:
                raise
            logger.warning("Skipping %s: %s", path, exc)
        except OSError as exc:
            logger.warning("Skipping %s: %s", path, exc)
    logger.debug("Scanned %d files", len(reports))
    return merge_reports(reports)


def write_output(report: ScanReport, output_path: str | None, report_format: str, fail_on: Severity) -> None:
    summary = format_summary_table(report, fail_on=fail_on)
    print(summary)

    if report_format == "json":
        payload = json.dumps(
            {**report.to_dict(), "passed": report.passed(fail_on), "fail_on": fail_on.value},
            indent=2,
        )
        if output_path:
            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(payload, encoding="utf-8")
            print(f"\nReport written to {output_path}")
        else:
            print("\nJSON Report")
            print(payload)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config)
        if args.rules:
            config = replace(config, rules_path=args.rules)
        catalog = config.build_catalog()
    except (ConfigError, CatalogError) as exc:
        parser.error(str(exc))

    fail_on = Severity.parse(args.fail_on) if args.fail_on else config.fail_on
    sources = args.source_paths or list(DEFAULT_SOURCE_DIRS)
    try:
        report = run_scan(
            sources,
            config,
            catalog,
            language=args.language,
            resolve_fixes=not args.no_fixes,
            strict=args.strict,
        )
    except InvalidInputError as exc:
        parser.error(str(exc))
    write_output(report, args.output_path, args.format, fail_on)
    return report.exit_code(fail_on)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
