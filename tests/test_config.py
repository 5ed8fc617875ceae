"""Tests for configuration loading, saving and validation."""

import pytest
import yaml

from llm_doc_commenter.src.config import Config, ConfigManager, LLMConfig, resolve_env_references
from llm_doc_commenter.src.constants import BACKUP_SUFFIX, DEFAULT_WINDOW_LINES
from llm_doc_commenter.utils.llm_client import LLMClientFactory


def _clear_provider_env(monkeypatch):
    for prefix in ("OPENAI", "ANTHROPIC", "OLLAMA"):
        for suffix in ("MODEL", "API_KEY", "BASE_URL", "TEMPERATURE", "MAX_TOKENS"):
            monkeypatch.delenv(f"{prefix}_{suffix}", raising=False)


def test_defaults(monkeypatch):
    _clear_provider_env(monkeypatch)
    config = Config()

    assert config.analysis.window_lines == DEFAULT_WINDOW_LINES
    assert config.analysis.source == "template"
    assert config.output.backup_suffix == BACKUP_SUFFIX
    assert config.output.dry_run is False
    assert config.watch.interval_minutes == 5.0
    assert ".llm-doc-commenter" in config.scanning.exclude
    assert config.llm.provider == "openai"
    assert config.llm.api_key is None


def test_llm_config_reads_provider_environment(monkeypatch):
    _clear_provider_env(monkeypatch)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("ANTHROPIC_MODEL", "claude-test")
    monkeypatch.setenv("ANTHROPIC_TEMPERATURE", "0.2")
    monkeypatch.setenv("ANTHROPIC_MAX_TOKENS", "1000")

    llm = LLMConfig(provider="anthropic")

    assert llm.api_key == "sk-test"
    assert llm.model == "claude-test"
    assert llm.temperature == 0.2
    assert llm.max_tokens == 1000


def test_init_config_writes_yaml_once(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    manager = ConfigManager(project_root=str(tmp_path))

    assert manager.init_config() is True
    assert manager.config_file.exists()
    data = yaml.safe_load(manager.config_file.read_text(encoding="utf-8"))
    assert data["analysis"]["source"] == "template"
    assert data["llm"]["api_key"] is None

    assert manager.init_config() is False
    assert manager.init_config(overwrite=True) is True


def test_load_resolves_environment_references(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    monkeypatch.setenv("LLMDOC_ANSWER_FILE", "answers/latest.json")
    manager = ConfigManager(project_root=str(tmp_path))
    manager.config_dir.mkdir()
    manager.config_file.write_text(
        "analysis:\n"
        "  window_lines: 4\n"
        "  source: response\n"
        "  response_file: ${LLMDOC_ANSWER_FILE}\n"
        "scanning:\n"
        "  paths: [src]\n",
        encoding="utf-8",
    )

    config = manager.load()

    assert config.analysis.window_lines == 4
    assert config.analysis.source == "response"
    assert config.analysis.response_file == "answers/latest.json"
    assert config.scanning.paths == ["src"]
    assert config.project_root == str(tmp_path)


def test_load_reads_dotenv(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    # Registered so monkeypatch removes what load_dotenv sets
    monkeypatch.setenv("LLMDOC_DOTENV_ONLY", "unset")
    monkeypatch.delenv("LLMDOC_DOTENV_ONLY")
    (tmp_path / ".env").write_text("LLMDOC_DOTENV_ONLY=from-dotenv\n", encoding="utf-8")
    manager = ConfigManager(project_root=str(tmp_path))
    manager.config_dir.mkdir()
    manager.config_file.write_text(
        "analysis:\n  response_file: ${LLMDOC_DOTENV_ONLY}\n", encoding="utf-8"
    )

    config = manager.load()

    assert config.analysis.response_file == "from-dotenv"


def test_broken_config_falls_back_to_defaults(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    manager = ConfigManager(project_root=str(tmp_path))
    manager.config_dir.mkdir()

    manager.config_file.write_text("analysis: [unclosed\n", encoding="utf-8")
    assert manager.load().analysis.window_lines == DEFAULT_WINDOW_LINES

    manager.config_file.write_text("llm:\n  provider: mystery\n", encoding="utf-8")
    assert manager.load().llm.provider == "openai"

    manager.config_file.write_text("analysis:\n  unknown_key: 1\n", encoding="utf-8")
    assert manager.load().analysis.source == "template"


def test_validate(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    manager = ConfigManager(project_root=str(tmp_path))

    config = Config()
    assert manager.validate(config) == []

    config.analysis.source = "llm"
    errors = manager.validate(config)
    assert errors == ["API key not found for provider: openai"]

    config.llm.provider = "ollama"
    assert manager.validate(config) == []

    config.analysis.source = "oracle"
    config.analysis.window_lines = -1
    config.watch.interval_minutes = 0
    config.output.backup_suffix = "/bak"
    errors = manager.validate(config)
    assert len(errors) == 4
    assert "Invalid documentation source: oracle" in errors


def test_to_dict_round_trip(monkeypatch):
    _clear_provider_env(monkeypatch)
    config = Config()
    config.analysis.only_functions = True
    config.watch.apply = True

    restored = Config.from_dict(config.to_dict())

    assert restored.analysis.only_functions is True
    assert restored.watch.apply is True
    assert restored.scanning.exclude == config.scanning.exclude


def test_cleanup(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    manager = ConfigManager(project_root=str(tmp_path))

    assert manager.cleanup() is False
    manager.init_config()
    assert manager.cleanup() is True
    assert not manager.config_dir.exists()


def test_env_references_inside_strings(monkeypatch):
    monkeypatch.setenv("LLMDOC_ROOT", "/srv/app")
    monkeypatch.delenv("LLMDOC_NOT_SET", raising=False)

    resolved = resolve_env_references({
        "paths": ["${LLMDOC_ROOT}/src", "lib"],
        "response_file": "${LLMDOC_NOT_SET}",
        "window_lines": 3,
    })

    assert resolved == {
        "paths": ["/srv/app/src", "lib"],
        "response_file": "${LLMDOC_NOT_SET}",
        "window_lines": 3,
    }


def test_unknown_provider_is_rejected(monkeypatch):
    _clear_provider_env(monkeypatch)
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        LLMConfig(provider="mystery")


def test_registered_providers():
    assert LLMClientFactory.supported_providers() == ["anthropic", "ollama", "openai"]
    with pytest.raises(ValueError, match="Choose one of: anthropic, ollama, openai"):
        LLMClientFactory.create("mystery", "some-model")


def test_zero_window_is_invalid(tmp_path, monkeypatch):
    _clear_provider_env(monkeypatch)
    config = Config()
    config.analysis.window_lines = 0

    assert ConfigManager(project_root=str(tmp_path)).validate(config) == [
        "window_lines must be at least 1: 0"
    ]


def test_cleanup_failure_is_logged(tmp_path, monkeypatch, caplog):
    _clear_provider_env(monkeypatch)
    manager = ConfigManager(project_root=str(tmp_path))
    manager.init_config()

    def rmtree(path):
        raise PermissionError("directory is locked")

    monkeypatch.setattr("llm_doc_commenter.src.config.shutil.rmtree", rmtree)

    with caplog.at_level("ERROR", logger="llm_doc_commenter"):
        assert manager.cleanup() is False

    assert manager.config_dir.exists()
    assert any(
        record.levelname == "ERROR" and "directory is locked" in record.getMessage()
        for record in caplog.records
    )
