"""Line-scoped pattern matching of catalog rules against one source text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from .language import Language
from .rules import RuleCatalog


@dataclass(frozen=True)
class RawMatch:
    """One regex hit before deduplication."""

    rule_id: str
    line: int
    column: Optional[int]
    matched_text: str


def split_lines(text: str) -> List[str]:
    """Split ``text`` into physical lines.

    ``\\r\\n`` and lone ``\\r`` count as newlines. A trailing terminator does not
    open an extra empty line, while a final unterminated line is kept.
    """

    if not text:
        return []
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = normalized.split("\n")
    if normalized.endswith("\n"):
        lines.pop()
    return lines


def iter_matches(
    lines: List[str],
    language: Union[Language, str],
    catalog: RuleCatalog,
) -> Iterator[RawMatch]:
    """Yield every match position of every applicable rule, rule by rule."""

    for rule in catalog.rules_for(language):
        search = rule.pattern.finditer
        for line_number, line in enumerate(lines, start=1):
            for hit in search(line):
                # Lookaround-only patterns can still produce empty hits.
                if hit.end() == hit.start():
                    continue
                yield RawMatch(
                    rule_id=rule.id,
                    line=line_number,
                    column=hit.start(),
                    matched_text=hit.group(0),
                )


def match(text: str, language: Union[Language, str], catalog: RuleCatalog) -> List[RawMatch]:
    return list(iter_matches(split_lines(text), language, catalog))
