import pytest

from vulnscan.config import DEFAULT_MAX_FILE_SIZE_BYTES, ScanConfig, load_config
from vulnscan.errors import ConfigError
from vulnscan.rules import default_catalog
from vulnscan.severity import Severity


def test_defaults_when_no_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    config = load_config()

    assert config == ScanConfig()
    assert config.fail_on == Severity.MEDIUM
    assert config.max_file_size_bytes == DEFAULT_MAX_FILE_SIZE_BYTES
    assert config.build_catalog() is default_catalog()


def test_default_config_file_is_picked_up(tmp_path, monkeypatch):
    (tmp_path / ".vulnscan.yaml").write_text("fail_on: high\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert load_config().fail_on == Severity.HIGH


def test_load_full_config(tmp_path):
    path = tmp_path / "scan.yaml"
    path.write_text(
        """
fail_on: critical
max_file_size_bytes: 1024
disabled_rules:
  - plain-http-url
extensions: [js, .PY]
""".strip(),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.fail_on == Severity.CRITICAL
    assert config.max_file_size_bytes == 1024
    assert config.disabled_rules == ("plain-http-url",)
    assert config.extensions == (".js", ".py")
    assert "plain-http-url" not in config.build_catalog()


def test_explicit_missing_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    "content",
    [
        "fail_on: urgent\n",
        "max_file_size_bytes: 0\n",
        "max_file_size_bytes: lots\n",
        "disabled_rules: plain-http-url\n",
        "unexpected: true\n",
        "- just\n- a list\n",
        "fail_on: [\n",
    ],
)
def test_invalid_config_is_rejected(tmp_path, content):
    path = tmp_path / "scan.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_config_error_is_a_value_error():
    assert issubclass(ConfigError, ValueError)
