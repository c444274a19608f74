"""Tests for docwatch.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from docwatch.config import (
    ConfigError,
    MissingCredentialsError,
    ProviderKind,
    WatchConfig,
    load_config,
)


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path, env={})

    assert isinstance(config, WatchConfig)
    assert config.root == tmp_path.resolve()
    assert config.provider is ProviderKind.OLLAMA
    assert config.model == "qwen2.5:0.5b"
    assert config.max_tokens == 30000
    assert config.update_interval_ms == 5000
    assert config.debounce_ms == 1000
    assert config.output_path == tmp_path.resolve() / "project-doc.md"
    assert config.sections == ()
    assert config.resolved_base_url == "http://localhost:11434"


def test_load_config_parses_yaml_fields(tmp_path: Path) -> None:
    (tmp_path / ".docwatch.yml").write_text(
        """
llm:
  provider: groq
  model: llama-3.1-8b-instant
  temperature: 0.2
  max_tokens: 12000
  request_timeout: 30
output_path: docs/project.md
update_interval_ms: 10000
exclude_dirs: [vendor]
sections: [overview, setup]
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path, env={})

    assert config.provider is ProviderKind.GROQ
    assert config.model == "llama-3.1-8b-instant"
    assert config.temperature == 0.2
    assert config.max_tokens == 12000
    assert config.request_timeout == 30.0
    assert config.output_path == tmp_path.resolve() / "docs" / "project.md"
    assert config.update_interval_ms == 10000
    assert config.exclude_dirs == ("vendor",)
    assert config.sections == ("overview", "setup")
    assert config.resolved_base_url == "https://api.groq.com/openai/v1"


def test_env_context_file_sits_below_process_environment(tmp_path: Path) -> None:
    (tmp_path / ".env.context").write_text(
        "PROVIDER=openai\nOPENAI_API_KEY=sk-file\nLLM_MODEL=gpt-4o-mini\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path, env={"OPENAI_API_KEY": "sk-env"})

    assert config.provider is ProviderKind.OPENAI
    assert config.api_key == "sk-env"
    assert config.model == "gpt-4o-mini"


def test_environment_overrides_yaml(tmp_path: Path) -> None:
    (tmp_path / ".docwatch.yml").write_text("llm:\n  provider: ollama\nmax_depth: 3\n", encoding="utf-8")

    config = load_config(
        tmp_path,
        env={"PROVIDER": "openwebui", "OPENWEBUI_API_URL": "http://chat.local/api/", "SECTIONS": "overview, apis"},
    )

    assert config.provider is ProviderKind.OPENWEBUI
    assert config.resolved_base_url == "http://chat.local/api"
    assert config.max_depth == 3
    assert config.sections == ("overview", "apis")


def test_require_credentials_for_hosted_providers(tmp_path: Path) -> None:
    config = load_config(tmp_path, env={"PROVIDER": "openai"})

    with pytest.raises(MissingCredentialsError, match="OPENAI_API_KEY"):
        config.require_credentials()

    load_config(tmp_path, env={"PROVIDER": "openwebui"}).require_credentials()
    load_config(tmp_path, env={"PROVIDER": "groq", "GROQ_API_KEY": "gsk"}).require_credentials()


@pytest.mark.parametrize(
    "env",
    [
        {"PROVIDER": "vertex"},
        {"MAX_TOKENS": "lots"},
        {"UPDATE_INTERVAL": "0"},
        {"RESERVE_FRACTION": "1.5"},
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, env: dict) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path, env=env)


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    (tmp_path / ".docwatch.yml").write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path, env={})


def test_with_overrides_resolves_output_under_root(tmp_path: Path) -> None:
    config = load_config(tmp_path, env={})

    updated = config.with_overrides(output_path="out/doc.md", update_interval_ms=2500)

    assert updated.output_path == tmp_path.resolve() / "out" / "doc.md"
    assert updated.update_interval_ms == 2500
    assert config.with_overrides() is config
    with pytest.raises(ConfigError):
        config.with_overrides(update_interval_ms=0)


def test_self_excluded_paths_include_outputs_and_config_files(tmp_path: Path) -> None:
    config = load_config(tmp_path, env={})

    excluded = config.self_excluded_paths()

    assert config.output_path in excluded
    assert tmp_path.resolve() / ".docwatch.yml" in excluded
    assert tmp_path.resolve() / ".env.context" in excluded
    assert config.sections == ()
    assert config.sections_dir in excluded


def test_bedrock_reads_aws_settings(tmp_path: Path) -> None:
    (tmp_path / ".env.context").write_text(
        "PROVIDER=bedrock\n"
        "LLM_MODEL=anthropic.claude-3-sonnet-20240229-v1:0\n"
        "AWS_REGION=eu-west-1\n"
        "AWS_ACCESS_KEY_ID=AKIAEXAMPLE\n"
        "AWS_SECRET_ACCESS_KEY=secret\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path, env={})

    assert config.provider is ProviderKind.BEDROCK
    assert config.aws_region == "eu-west-1"
    assert config.aws_access_key_id == "AKIAEXAMPLE"
    assert config.aws_secret_access_key == "secret"
    assert config.base_url is None
    assert config.resolved_base_url == "https://bedrock-runtime.eu-west-1.amazonaws.com"
    config.require_credentials()


def test_bedrock_credentials_must_come_in_pairs(tmp_path: Path) -> None:
    config = load_config(tmp_path, env={"PROVIDER": "bedrock", "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE"})

    assert config.aws_region == "us-east-1"
    with pytest.raises(MissingCredentialsError, match="AWS_SECRET_ACCESS_KEY"):
        config.require_credentials()

    load_config(tmp_path, env={"PROVIDER": "bedrock"}).require_credentials()
    with pytest.raises(MissingCredentialsError, match="AWS_REGION"):
        WatchConfig(root=tmp_path, provider=ProviderKind.BEDROCK, aws_region=None).require_credentials()
