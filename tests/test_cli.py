import json
from pathlib import Path

import pytest

from vulnscan import cli

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_cli_generates_json_report(tmp_path, capsys):
    output_path = tmp_path / "scan.json"

    exit_code = cli.main(["--source", str(FIXTURES / "vulnerable"), "--out", str(output_path)])

    captured = capsys.readouterr()
    assert "Scan Summary" in captured.out
    assert f"Report written to {output_path}" in captured.out
    assert exit_code == 2  # critical findings in the vulnerable fixtures
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"]["critical"] >= 1
    assert data["passed"] is False
    assert data["fail_on"] == "medium"
    files = {Path(finding["location"]["file"]).name for finding in data["findings"]}
    assert files == {"app.js", "handler.py"}
    assert all(finding["suggested_fix"] for finding in data["findings"])


def test_cli_passes_on_clean_source(tmp_path, capsys):
    output_path = tmp_path / "clean.json"

    exit_code = cli.main(["--source", str(FIXTURES / "safe"), "--out", str(output_path)])

    captured = capsys.readouterr()
    assert "Scan Summary" in captured.out
    assert exit_code == 0
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["summary"]["total"] == 0
    assert data["passed"] is True


def test_cli_prints_json_without_output_path(capsys):
    exit_code = cli.main(["--source", str(FIXTURES / "vulnerable" / "handler.py"), "--no-fixes"])

    captured = capsys.readouterr()
    data = json.loads(captured.out.split("JSON Report\n", 1)[1])
    assert exit_code == 2
    assert {finding["rule_id"] for finding in data["findings"]} >= {"py-sql-fstring", "py-pickle-load"}
    assert all(finding["suggested_fix"] is None for finding in data["findings"])


def test_fail_on_threshold_controls_exit_code(tmp_path, capsys):
    source = tmp_path / "cookie.js"
    source.write_text('res.cookie("session", token, { httpOnly: true });\n', encoding="utf-8")

    assert cli.main(["--source", str(source)]) == 1
    assert cli.main(["--source", str(source), "--fail-on", "high"]) == 0
    assert "Status    : PASS" in capsys.readouterr().out


def test_config_file_disables_rules(tmp_path):
    source = tmp_path / "cookie.js"
    source.write_text('res.cookie("session", token);\n', encoding="utf-8")
    config = tmp_path / "scan.yaml"
    config.write_text("disabled_rules: [express-cookie-without-secure]\n", encoding="utf-8")

    assert cli.main(["--source", str(source), "--config", str(config)]) == 0


def test_language_flag_overrides_detection(tmp_path):
    source = tmp_path / "snippet.txt"
    source.write_text("data = pickle.loads(blob)\n", encoding="utf-8")

    assert cli.main(["--source", str(source)]) == 0
    assert cli.main(["--source", str(source), "--language", "python"]) == 2


def test_invalid_utf8_file_is_skipped_unless_strict(tmp_path, capsys):
    (tmp_path / "broken.py").write_bytes(b"\xff\xfe eval(data)\n")
    (tmp_path / "ok.py").write_text('print("hello")\n', encoding="utf-8")

    assert cli.main(["--source", str(tmp_path)]) == 0

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--source", str(tmp_path), "--strict"])
    assert excinfo.value.code == 2
    assert "not valid UTF-8" in capsys.readouterr().err


def test_oversized_files_are_skipped(tmp_path):
    source = tmp_path / "big.py"
    source.write_text("data = pickle.loads(blob)\n" + "# padding\n" * 50, encoding="utf-8")
    config = tmp_path / "scan.yaml"
    config.write_text("max_file_size_bytes: 64\n", encoding="utf-8")

    assert cli.main(["--source", str(source), "--config", str(config)]) == 0
    assert cli.main(["--source", str(source), "--config", str(config), "--strict"]) == 0


def test_broken_config_is_a_usage_error(tmp_path):
    config = tmp_path / "scan.yaml"
    config.write_text("fail_on: urgent\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config)])
    assert excinfo.value.code == 2
