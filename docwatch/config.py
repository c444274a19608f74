"""Configuration loading for docwatch (.docwatch.yml, .env.context, environment)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import yaml
from dotenv import dotenv_values

CONFIG_FILENAME = ".docwatch.yml"
ENV_FILENAME = ".env.context"

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert programmer and technical documentation specialist. "
    "Write accurate, well-structured Markdown documentation grounded only in the project files you are given."
)


class ConfigError(RuntimeError):
    """Raised when the configuration cannot be parsed or is inconsistent."""


class MissingCredentialsError(ConfigError):
    """Raised when the selected provider needs credentials that are not configured."""


class ProviderKind(str, Enum):
    OLLAMA = "ollama"
    OPENAI = "openai"
    GROQ = "groq"
    OPENWEBUI = "openwebui"
    BEDROCK = "bedrock"


_DEFAULT_BASE_URLS: Dict[ProviderKind, str] = {
    ProviderKind.OLLAMA: "http://localhost:11434",
    ProviderKind.OPENAI: "https://api.openai.com/v1",
    ProviderKind.GROQ: "https://api.groq.com/openai/v1",
    ProviderKind.OPENWEBUI: "http://localhost:5000/api",
}

_BASE_URL_ENV: Dict[ProviderKind, str] = {
    ProviderKind.OLLAMA: "OLLAMA_API_URL",
    ProviderKind.OPENAI: "OPENAI_API_URL",
    ProviderKind.GROQ: "GROQ_API_URL",
    ProviderKind.OPENWEBUI: "OPENWEBUI_API_URL",
    ProviderKind.BEDROCK: "BEDROCK_API_URL",
}

_API_KEY_ENV: Dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "OPENAI_API_KEY",
    ProviderKind.GROQ: "GROQ_API_KEY",
    ProviderKind.OPENWEBUI: "OPENWEBUI_API_KEY",
}

_REQUIRES_API_KEY = {ProviderKind.OPENAI, ProviderKind.GROQ}


@dataclass(frozen=True)
class WatchConfig:
    """Read-only settings snapshot for one docwatch process."""

    root: Path
    provider: ProviderKind = ProviderKind.OLLAMA
    model: str = "qwen2.5:0.5b"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 30000
    response_max_tokens: Optional[int] = None
    update_interval_ms: int = 5000
    debounce_ms: int = 1000
    output_path: Path = Path("project-doc.md")
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    request_timeout: float = 120.0
    generation_timeout: float = 300.0
    max_depth: int = 5
    max_file_bytes: int = 100 * 1024
    reserve_fraction: float = 0.1
    exclude_dirs: Tuple[str, ...] = ()
    sections: Tuple[str, ...] = ()
    sections_dir: Path = Path("docs/sections")
    config_files: Tuple[Path, ...] = field(default_factory=tuple)
    aws_region: Optional[str] = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    @property
    def resolved_base_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        if self.provider is ProviderKind.BEDROCK:
            return f"https://bedrock-runtime.{self.aws_region}.amazonaws.com"
        return _DEFAULT_BASE_URLS[self.provider]

    def require_credentials(self) -> None:
        """Fail fast when the selected provider cannot possibly authenticate."""
        if self.provider in _REQUIRES_API_KEY and not self.api_key:
            env_key = _API_KEY_ENV[self.provider]
            raise MissingCredentialsError(
                f"{self.provider.value} requires an API key. Set {env_key} in {ENV_FILENAME} or the environment."
            )
        if self.provider is ProviderKind.BEDROCK:
            if not self.aws_region:
                raise MissingCredentialsError(f"bedrock requires a region. Set AWS_REGION in {ENV_FILENAME}.")
            # Without explicit keys boto3 falls back to its own credential chain.
            if bool(self.aws_access_key_id) != bool(self.aws_secret_access_key):
                raise MissingCredentialsError(
                    "bedrock needs both AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY, or neither."
                )
        if not self.model:
            raise MissingCredentialsError("No model configured. Set LLM_MODEL.")

    def with_overrides(
        self,
        *,
        output_path: str | Path | None = None,
        update_interval_ms: int | None = None,
    ) -> "WatchConfig":
        """Return a copy with CLI-level overrides applied."""
        changes: Dict[str, Any] = {}
        if output_path is not None:
            changes["output_path"] = _resolve_under(self.root, output_path)
        if update_interval_ms is not None:
            if update_interval_ms <= 0:
                raise ConfigError("Update interval must be a positive number of milliseconds")
            changes["update_interval_ms"] = update_interval_ms
        return replace(self, **changes) if changes else self

    def self_excluded_paths(self) -> Tuple[Path, ...]:
        """Paths the watcher and collector must never treat as project input."""
        return (self.output_path, self.sections_dir, *self.config_files)


def load_config(root: str | Path, *, env: Mapping[str, str] | None = None) -> WatchConfig:
    """Load configuration for the project rooted at ``root``."""
    root_path = Path(root).expanduser().resolve()
    environ: Mapping[str, str] = os.environ if env is None else env

    config_file = root_path / CONFIG_FILENAME
    env_file = root_path / ENV_FILENAME

    data = _read_yaml(config_file) if config_file.exists() else {}
    llm_data = _as_dict(data.get("llm"))

    # .env.context values sit below the real environment.
    layered: Dict[str, str] = {}
    if env_file.exists():
        layered.update({key: value for key, value in dotenv_values(env_file).items() if value is not None})
    layered.update({key: value for key, value in environ.items() if isinstance(value, str)})

    def pick(env_key: str, yaml_value: Any) -> Any:
        value = layered.get(env_key)
        if value is not None and value != "":
            return value
        return yaml_value

    provider_raw = pick("PROVIDER", llm_data.get("provider"))
    provider = _as_provider(provider_raw) if provider_raw is not None else ProviderKind.OLLAMA

    api_key_env = _API_KEY_ENV.get(provider)
    api_key = _as_str(pick(api_key_env, llm_data.get("api_key"))) if api_key_env else _as_str(llm_data.get("api_key"))
    base_url = _as_str(pick(_BASE_URL_ENV[provider], llm_data.get("base_url")))

    defaults = WatchConfig(root=root_path)

    output_raw = _as_str(pick("OUTPUT_PATH", data.get("output_path")))
    sections_dir_raw = _as_str(pick("SECTIONS_DIR", data.get("sections_dir")))
    sections_raw = pick("SECTIONS", data.get("sections"))
    if isinstance(sections_raw, str):
        sections_raw = [part.strip() for part in sections_raw.split(",")]

    reserve_fraction = _number(
        pick("RESERVE_FRACTION", data.get("reserve_fraction")), defaults.reserve_fraction, float, "RESERVE_FRACTION"
    )
    if not 0.0 <= reserve_fraction < 1.0:
        raise ConfigError("RESERVE_FRACTION must be in [0, 1)")

    config = WatchConfig(
        root=root_path,
        provider=provider,
        model=_as_str(pick("LLM_MODEL", llm_data.get("model"))) or defaults.model,
        api_key=api_key or None,
        base_url=base_url or None,
        temperature=_number(pick("TEMPERATURE", llm_data.get("temperature")), defaults.temperature, float, "TEMPERATURE"),
        max_tokens=_positive_int(pick("MAX_TOKENS", llm_data.get("max_tokens")), defaults.max_tokens, "MAX_TOKENS"),
        response_max_tokens=_optional_int(
            pick("RESPONSE_MAX_TOKENS", llm_data.get("response_max_tokens")), "RESPONSE_MAX_TOKENS"
        ),
        update_interval_ms=_positive_int(
            pick("UPDATE_INTERVAL", data.get("update_interval_ms")), defaults.update_interval_ms, "UPDATE_INTERVAL"
        ),
        debounce_ms=_positive_int(pick("DEBOUNCE_MS", data.get("debounce_ms")), defaults.debounce_ms, "DEBOUNCE_MS"),
        output_path=_resolve_under(root_path, output_raw or defaults.output_path),
        system_prompt=_as_str(pick("SYSTEM_PROMPT", llm_data.get("system_prompt"))) or defaults.system_prompt,
        request_timeout=_number(
            pick("REQUEST_TIMEOUT", llm_data.get("request_timeout")), defaults.request_timeout, float, "REQUEST_TIMEOUT"
        ),
        generation_timeout=_number(
            pick("GENERATION_TIMEOUT", data.get("generation_timeout")),
            defaults.generation_timeout,
            float,
            "GENERATION_TIMEOUT",
        ),
        max_depth=_positive_int(pick("MAX_DEPTH", data.get("max_depth")), defaults.max_depth, "MAX_DEPTH"),
        max_file_bytes=_positive_int(
            pick("MAX_FILE_BYTES", data.get("max_file_bytes")), defaults.max_file_bytes, "MAX_FILE_BYTES"
        ),
        reserve_fraction=reserve_fraction,
        exclude_dirs=tuple(_as_str_list(data.get("exclude_dirs"))),
        sections=tuple(name for name in _as_str_list(sections_raw) if name),
        sections_dir=_resolve_under(root_path, sections_dir_raw or defaults.sections_dir),
        config_files=(config_file, env_file),
        aws_region=_as_str(pick("AWS_REGION", llm_data.get("aws_region"))) or defaults.aws_region,
        aws_access_key_id=_as_str(pick("AWS_ACCESS_KEY_ID", None)) or None,
        aws_secret_access_key=_as_str(pick("AWS_SECRET_ACCESS_KEY", None)) or None,
    )
    return config


def _read_yaml(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _resolve_under(root: Path, value: str | Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = root / path
    return path.resolve()


def _as_provider(value: Any) -> ProviderKind:
    name = str(value).strip().lower()
    try:
        return ProviderKind(name)
    except ValueError as exc:
        choices = ", ".join(kind.value for kind in ProviderKind)
        raise ConfigError(f"Unknown provider '{value}'. Choose one of: {choices}") from exc


def _number(value: Any, default: Any, kind: type, label: str) -> Any:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be numeric")
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{label} must be numeric, got {value!r}") from exc


def _positive_int(value: Any, default: int, label: str) -> int:
    number = _number(value, default, int, label)
    if number <= 0:
        raise ConfigError(f"{label} must be positive, got {number}")
    return number


def _optional_int(value: Any, label: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return _positive_int(value, 0, label)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item).strip() for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DEFAULT_SYSTEM_PROMPT",
    "ENV_FILENAME",
    "MissingCredentialsError",
    "ProviderKind",
    "WatchConfig",
    "load_config",
]
