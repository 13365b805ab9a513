from pathlib import Path

import pytest

from prompt_packer.exceptions import ConfigError
from prompt_packer.settings import OutputFormat, PackerSettings, load_settings


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = PackerSettings()

    assert settings.ignore_patterns == []
    assert settings.max_file_size == 1_048_576
    assert settings.include_file_stats is True
    assert settings.estimate_tokens is True
    assert settings.output_format is OutputFormat.MARKDOWN
    assert settings.batch_size == 50


@pytest.mark.unit
def test_load_settings_reads_yaml_file_in_root(tmp_path: Path) -> None:
    (tmp_path / ".promptpacker.yaml").write_text(
        "max-file-size: 2048\noutput_format: xml\nignore_patterns:\n  - 'docs/**'\nunknown: 1\n",
        encoding="utf-8",
    )

    settings = load_settings(tmp_path)

    assert settings.max_file_size == 2048
    assert settings.output_format is OutputFormat.XML
    assert settings.ignore_patterns == ["docs/**"]


@pytest.mark.unit
def test_load_settings_environment_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".promptpacker.yaml").write_text("estimate_tokens: true\n", encoding="utf-8")
    monkeypatch.setenv("PROMPT_PACKER_ESTIMATE_TOKENS", "false")
    monkeypatch.setenv("PROMPT_PACKER_MAX_FILE_SIZE", "10")

    settings = load_settings(tmp_path)

    assert settings.estimate_tokens is False
    assert settings.max_file_size == 10


@pytest.mark.unit
def test_load_settings_explicit_overrides_win_and_patterns_add_up(tmp_path: Path) -> None:
    (tmp_path / ".promptpacker.yaml").write_text("ignore_patterns: ['a/**']\n", encoding="utf-8")

    settings = load_settings(
        tmp_path,
        ignore_patterns=["b/**"],
        include_file_stats=False,
        max_file_size=None,
    )

    assert settings.ignore_patterns == ["a/**", "b/**"]
    assert settings.include_file_stats is False
    assert settings.max_file_size == 1_048_576


@pytest.mark.unit
def test_load_settings_rejects_malformed_yaml(tmp_path: Path) -> None:
    config = tmp_path / "bad.yaml"
    config.write_text("ignore_patterns: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_settings(tmp_path, config)


@pytest.mark.unit
def test_load_settings_rejects_invalid_value(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(tmp_path, max_file_size=-1)
