"""Rule registry for scanner.

Rules are plain data loaded from a YAML document: a ``fixes`` mapping from
vulnerability type to remediation template and a ``rules`` list. Every
definition is validated up front; a malformed entry raises
:class:`~vulnscan.errors.CatalogError` so that a broken catalog never scans.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Pattern, Tuple, Union

import yaml

from vulnscan.errors import CatalogError
from vulnscan.language import Language
from vulnscan.severity import Severity
from vulnscan.utils import read_yaml_file

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_RESOURCE = "catalog.yaml"
REQUIRED_RULE_KEYS = ("id", "type", "severity", "pattern", "description")


@dataclass(frozen=True)
class FixTemplate:
    """Remediation guidance: why it matters plus a before/after snippet."""

    rationale: str
    before: str = ""
    after: str = ""


@dataclass(frozen=True)
class Rule:
    """One detection pattern with its severity, language scope and fix."""

    id: str
    vulnerability_type: str
    severity: Severity
    languages: FrozenSet[Language]
    pattern: Pattern[str]
    description: str
    fix_template: FixTemplate
    cwe_id: Optional[str] = None
    references: Tuple[str, ...] = ()

    def applies_to(self, language: Language) -> bool:
        return not self.languages or language in self.languages


class RuleCatalog:
    """Immutable, ordered collection of rules shared by every scan."""

    def __init__(self, rules: Iterable[Rule], fix_templates: Mapping[str, FixTemplate]) -> None:
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._by_id: Mapping[str, Rule] = MappingProxyType({rule.id: rule for rule in self._rules})
        self._order: Mapping[str, int] = MappingProxyType({rule.id: idx for idx, rule in enumerate(self._rules)})
        self._fix_templates: Mapping[str, FixTemplate] = MappingProxyType(dict(fix_templates))
        self._per_language: Dict[Language, Tuple[Rule, ...]] = {
            language: tuple(rule for rule in self._rules if rule.applies_to(language)) for language in Language
        }

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id

    def rules_for(self, language: Union[Language, str]) -> Tuple[Rule, ...]:
        """Return the rules applicable to ``language`` in insertion order."""

        return self._per_language[Language.from_tag(language)]

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.get(rule_id)

    def position(self, rule_id: str) -> int:
        return self._order[rule_id]

    def fix_template_for(self, vulnerability_type: str) -> Optional[FixTemplate]:
        return self._fix_templates.get(vulnerability_type)

    @property
    def vulnerability_types(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for rule in self._rules:
            seen.setdefault(rule.vulnerability_type, None)
        return tuple(seen)

    def without(self, rule_ids: Iterable[str]) -> "RuleCatalog":
        """Return a new catalog with the given rule ids removed."""

        dropped = set(rule_ids)
        unknown = dropped - set(self._by_id)
        if unknown:
            raise CatalogError(f"Cannot disable unknown rule ids: {', '.join(sorted(unknown))}")
        return RuleCatalog(
            (rule for rule in self._rules if rule.id not in dropped),
            self._fix_templates,
        )


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------
def build_catalog(data: Any, source: str = "<catalog>") -> RuleCatalog:
    """Validate a parsed catalog document and build the immutable catalog."""

    if not isinstance(data, dict):
        raise CatalogError(f"{source}: catalog must be a mapping with 'rules' and 'fixes'")

    fix_templates = _parse_fix_templates(data.get("fixes") or {}, source)

    rules_raw = data.get("rules")
    if not isinstance(rules_raw, list) or not rules_raw:
        raise CatalogError(f"{source}: catalog must include a non-empty 'rules' list")

    rules: List[Rule] = []
    seen_ids = set()
    for index, item in enumerate(rules_raw):
        rule = _parse_rule(item, index, fix_templates, source)
        if rule.id in seen_ids:
            raise CatalogError(f"{source}: duplicate rule id {rule.id!r}")
        seen_ids.add(rule.id)
        rules.append(rule)

    catalog = RuleCatalog(rules, fix_templates)
    logger.debug("Loaded %d rules (%d fix templates) from %s", len(catalog), len(fix_templates), source)
    return catalog


def load_catalog(path: Union[str, Path]) -> RuleCatalog:
    """Load and validate a catalog file."""

    catalog_path = Path(path)
    try:
        data = read_yaml_file(catalog_path)
    except yaml.YAMLError as exc:
        raise CatalogError(f"{catalog_path}: invalid YAML: {exc}") from exc
    if data is None:
        raise CatalogError(f"Catalog file not found: {catalog_path}")
    return build_catalog(data, source=str(catalog_path))


@lru_cache(maxsize=None)
def default_catalog() -> RuleCatalog:
    """Return the packaged catalog, built once per process."""

    text = resources.files(__name__).joinpath(DEFAULT_CATALOG_RESOURCE).read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CatalogError(f"Packaged catalog is not valid YAML: {exc}") from exc
    return build_catalog(data, source=DEFAULT_CATALOG_RESOURCE)


def _parse_fix_templates(raw: Any, source: str) -> Dict[str, FixTemplate]:
    if not isinstance(raw, dict):
        raise CatalogError(f"{source}: 'fixes' must be a mapping of vulnerability type to template")
    return {str(name): _parse_fix(value, f"{source}: fix for {name!r}") for name, value in raw.items()}


def _parse_fix(raw: Any, where: str) -> FixTemplate:
    if not isinstance(raw, dict) or not str(raw.get("rationale") or "").strip():
        raise CatalogError(f"{where} needs a non-empty 'rationale'")
    return FixTemplate(
        rationale=str(raw["rationale"]).strip(),
        before=str(raw.get("before") or "").strip("\n"),
        after=str(raw.get("after") or "").strip("\n"),
    )


def _parse_rule(item: Any, index: int, fix_templates: Mapping[str, FixTemplate], source: str) -> Rule:
    if not isinstance(item, dict):
        raise CatalogError(f"{source}: rule #{index} must be a mapping")

    missing = [key for key in REQUIRED_RULE_KEYS if not str(item.get(key) or "").strip()]
    if missing:
        raise CatalogError(f"{source}: rule #{index} is missing keys: {', '.join(missing)}")

    rule_id = str(item["id"]).strip()
    where = f"{source}: rule {rule_id!r}"

    try:
        severity = Severity.parse(item["severity"])
    except ValueError as exc:
        raise CatalogError(f"{where}: {exc}") from exc

    languages = _parse_languages(item.get("languages"), where)

    flags = re.IGNORECASE if item.get("ignore_case") else 0
    try:
        pattern = re.compile(str(item["pattern"]), flags)
    except re.error as exc:
        raise CatalogError(f"{where}: pattern does not compile: {exc}") from exc
    if pattern.match("") is not None:
        raise CatalogError(f"{where}: pattern matches the empty string")

    vulnerability_type = str(item["type"]).strip()
    if item.get("fix") is not None:
        fix_template = _parse_fix(item["fix"], f"{where}: fix")
    else:
        fix_template = fix_templates.get(vulnerability_type)
    if fix_template is None:
        raise CatalogError(f"{where}: no fix template for type {vulnerability_type!r}")

    references = item.get("references") or []
    if not isinstance(references, list):
        raise CatalogError(f"{where}: 'references' must be a list")

    cwe = item.get("cwe")
    return Rule(
        id=rule_id,
        vulnerability_type=vulnerability_type,
        severity=severity,
        languages=languages,
        pattern=pattern,
        description=str(item["description"]).strip(),
        fix_template=fix_template,
        cwe_id=str(cwe).strip() if cwe else None,
        references=tuple(str(ref) for ref in references),
    )


def _parse_languages(raw: Any, where: str) -> FrozenSet[Language]:
    if raw is None:
        return frozenset()
    if not isinstance(raw, list):
        raise CatalogError(f"{where}: 'languages' must be a list")
    languages = set()
    for tag in raw:
        language = Language.from_tag(tag)
        if language is Language.UNKNOWN and str(tag).strip().lower() != Language.UNKNOWN.value:
            raise CatalogError(f"{where}: unknown language {tag!r}")
        languages.add(language)
    return frozenset(languages)
