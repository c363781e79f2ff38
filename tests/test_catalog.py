import pytest

from vulnscan.errors import CatalogError
from vulnscan.language import Language
from vulnscan.rules import build_catalog, default_catalog, load_catalog
from vulnscan.severity import Severity


def _document(**overrides):
    rule = {
        "id": "demo-danger-call",
        "type": "Demo Issue",
        "severity": "high",
        "languages": ["python"],
        "pattern": r"\bdanger\s*\(",
        "description": "danger() is dangerous.",
    }
    rule.update(overrides)
    return {
        "fixes": {"Demo Issue": {"rationale": "Call safe() instead.", "before": "danger(x)", "after": "safe(x)"}},
        "rules": [rule],
    }


def test_default_catalog_loads_and_is_shared():
    catalog = default_catalog()

    assert len(catalog) > 40
    assert catalog is default_catalog()
    assert "SQL Injection" in catalog.vulnerability_types
    assert catalog.get("js-sql-template-literal").severity == Severity.CRITICAL


def test_every_packaged_type_has_a_fix_template():
    catalog = default_catalog()

    for vulnerability_type in catalog.vulnerability_types:
        assert catalog.fix_template_for(vulnerability_type) is not None


def test_rules_for_keeps_catalog_order():
    catalog = default_catalog()
    all_ids = [rule.id for rule in catalog]

    for language in Language:
        ids = [rule.id for rule in catalog.rules_for(language)]
        assert ids == [rule_id for rule_id in all_ids if rule_id in set(ids)]


def test_rules_for_respects_language_scope():
    catalog = default_catalog()

    python_ids = {rule.id for rule in catalog.rules_for("python")}
    unknown_rules = catalog.rules_for(Language.UNKNOWN)

    assert "py-eval-exec" in python_ids
    assert "js-sql-template-literal" not in python_ids
    assert "aws-access-key-id" in python_ids
    assert all(not rule.languages or Language.UNKNOWN in rule.languages for rule in unknown_rules)
    assert "aws-access-key-id" in {rule.id for rule in unknown_rules}


def test_build_catalog_from_document():
    catalog = build_catalog(_document(references=["https://example.test/demo"], cwe="CWE-0"))
    rule = catalog.get("demo-danger-call")

    assert rule.languages == frozenset({Language.PYTHON})
    assert rule.references == ("https://example.test/demo",)
    assert rule.cwe_id == "CWE-0"
    assert rule.fix_template.after == "safe(x)"


def test_rule_level_fix_overrides_type_template():
    catalog = build_catalog(_document(fix={"rationale": "Rule specific advice."}))

    assert catalog.get("demo-danger-call").fix_template.rationale == "Rule specific advice."
    assert catalog.fix_template_for("Demo Issue").rationale == "Call safe() instead."


@pytest.mark.parametrize(
    "overrides",
    [
        {"severity": "urgent"},
        {"pattern": "danger(["},
        {"pattern": "x*"},
        {"languages": ["cobol"]},
        {"languages": "python"},
        {"type": "Unregistered Type"},
        {"description": ""},
        {"references": "https://example.test"},
    ],
)
def test_malformed_rule_is_fatal(overrides):
    with pytest.raises(CatalogError):
        build_catalog(_document(**overrides))


def test_duplicate_rule_ids_are_fatal():
    document = _document()
    document["rules"].append(dict(document["rules"][0]))

    with pytest.raises(CatalogError):
        build_catalog(document)


def test_empty_rules_are_fatal():
    with pytest.raises(CatalogError):
        build_catalog({"fixes": {}, "rules": []})


def test_without_returns_a_new_catalog():
    catalog = default_catalog()
    trimmed = catalog.without(["plain-http-url"])

    assert "plain-http-url" in catalog
    assert "plain-http-url" not in trimmed
    assert len(trimmed) == len(catalog) - 1

    with pytest.raises(CatalogError):
        catalog.without(["no-such-rule"])


def test_load_catalog_from_file(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        """
fixes:
  Demo Issue:
    rationale: Call safe() instead.
rules:
  - id: demo-danger-call
    type: Demo Issue
    severity: low
    pattern: '\\bdanger\\s*\\('
    description: danger() is dangerous.
""".strip(),
        encoding="utf-8",
    )

    catalog = load_catalog(path)

    assert [rule.id for rule in catalog.rules_for("ruby")] == ["demo-danger-call"]
    assert catalog.get("demo-danger-call").pattern.search("danger (1)")


def test_load_catalog_errors(tmp_path):
    with pytest.raises(CatalogError):
        load_catalog(tmp_path / "missing.yaml")

    broken = tmp_path / "broken.yaml"
    broken.write_text("rules: [", encoding="utf-8")
    with pytest.raises(CatalogError):
        load_catalog(broken)
