"""Configuration model and loaders for docexpert.

Responsibilities:
- Define run configuration as a typed dataclass.
- Provide deterministic precedence resolution for provider, model, and API key.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `ExtractionConfig`: normalized settings for one extraction run.
- `ProviderRuntimeConfig`: resolved provider/model/key values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `ExtractionConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models.datatypes import PageRange, TranslationConfig
from .parsing import (
    normalize_optional_string,
    parse_permissive_boolean,
    parse_positive_float,
    parse_positive_int,
)
from .settings import SUPPORTED_PROVIDER_IDS, Settings

DEFAULT_TIMEOUT_SECONDS = 900.0
CACHE_PATH_ENV = "DOCEXPERT_CACHE_PATH"
PROVIDER_API_KEY_ENV: dict[str, str] = {
    "google": "GOOGLE_API_KEY",
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "mistral": "MISTRAL_API_KEY",
}


def default_cache_path(env: Mapping[str, str] | None = None) -> Path:
    """Return the cache path from `DOCEXPERT_CACHE_PATH` or the home default."""

    env_map: Mapping[str, str] = os.environ if env is None else env
    override = normalize_optional_string(env_map.get(CACHE_PATH_ENV))
    if override is not None:
        return Path(override).expanduser()
    return Path.home() / ".docexpert" / "cache.sqlite3"


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved provider runtime values for one run.

    Attributes:
        provider: Provider identifier.
        model: Model identifier.
        chunk_size: Pages per request, captured once at run start.
        api_key: Optional provider API key (never persisted).
    """

    provider: str
    model: str
    chunk_size: int
    api_key: str | None = None

    def as_metadata(self) -> dict[str, str]:
        """Return non-secret runtime metadata safe to print or persist."""

        return {
            "provider": self.provider,
            "model": self.model,
            "chunk_size": str(self.chunk_size),
        }


@dataclass(slots=True)
class ExtractionConfig:
    """Configuration for one extraction run.

    Attributes:
        input_pdf: Path to the source PDF.
        output_dir: Directory for extracted text and resume state.
        page_start: First requested page (1-based).
        page_end: Last requested page, or `None` for the last document page.
        provider: Optional provider override; settings decide when unset.
        model: Optional model override; settings decide when unset.
        api_key: Optional API key for provider calls.
        chunk_size: Optional pages-per-request override.
        target_language: Translation target; `None` means extraction only.
        source_language: Translation source language or `auto`.
        timeout_seconds: Per-chunk AI call ceiling.
        cache_path: Optional SQLite cache path override.
        use_cache: Whether the result cache is consulted and written.
        password: Optional PDF password.
        runtime_sources: Optional runtime source overrides injected by CLI.
    """

    input_pdf: Path
    output_dir: Path = Path("out")
    page_start: int = 1
    page_end: int | None = None
    provider: str | None = None
    model: str | None = None
    api_key: str | None = None
    chunk_size: int | None = None
    target_language: str | None = None
    source_language: str = "auto"
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    cache_path: Path | None = None
    use_cache: bool = True
    password: str | None = None
    runtime_sources: RuntimeConfigSources = field(default_factory=RuntimeConfigSources)

    def validate(self) -> None:
        """Validate configuration values before pipeline execution."""

        if isinstance(self.page_start, bool) or not isinstance(self.page_start, int):
            raise ValueError("`page_start` must be an integer.")
        if self.page_start < 1:
            raise ValueError("`page_start` must be at least 1.")
        if self.page_end is not None and (
            isinstance(self.page_end, bool) or not isinstance(self.page_end, int) or self.page_end < 1
        ):
            raise ValueError("`page_end` must be a positive integer.")
        if self.chunk_size is not None:
            parse_positive_int(self.chunk_size, "chunk_size")
        if self.provider is not None:
            self._validate_provider_id(self.provider)
        if self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be positive.")
        if self.target_language is not None and not self.target_language.strip():
            raise ValueError("`target_language` must be a non-empty string when set.")

    @property
    def translation(self) -> TranslationConfig | None:
        """Return translation directives, or `None` for extraction-only runs."""

        target = normalize_optional_string(self.target_language)
        if target is None:
            return None
        source = normalize_optional_string(self.source_language) or "auto"
        return TranslationConfig(target_language=target, source_language=source)

    def requested_range(self, total_pages: int) -> PageRange:
        """Return the requested page range, defaulting the end to `total_pages`."""

        end = self.page_end if self.page_end is not None else total_pages
        return PageRange(start=self.page_start, end=end)

    def resolved_cache_path(self, env: Mapping[str, str] | None = None) -> Path:
        """Return the configured cache path or the environment/home default."""

        if self.cache_path is not None:
            return self.cache_path
        return default_cache_path(env)

    def resolved_provider_runtime(
        self,
        sources: RuntimeConfigSources | None = None,
        settings: Settings | None = None,
    ) -> ProviderRuntimeConfig:
        """Resolve provider, model, chunk size, and API key.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field > stored settings.
        The secure source holds API keys under `<provider>_api_key`.
        """

        resolved_sources = sources if sources is not None else self.runtime_sources
        resolved_settings = settings if settings is not None else Settings()

        provider = self._resolve_runtime_value(
            key="provider",
            env_key="DOCEXPERT_PROVIDER",
            default_value=self.provider or resolved_settings.provider,
            sources=resolved_sources,
        ).lower()
        self._validate_provider_id(provider)

        settings_model = resolved_settings.models.get(provider)
        model = self._resolve_runtime_value(
            key="model",
            env_key="DOCEXPERT_MODEL",
            default_value=self.model or settings_model,
            sources=resolved_sources,
        )
        chunk_size = parse_positive_int(
            self._resolve_runtime_value(
                key="chunk_size",
                env_key="DOCEXPERT_CHUNK_SIZE",
                default_value=str(self.chunk_size or resolved_settings.pdf_chunk_size),
                sources=resolved_sources,
            ),
            "chunk_size",
        )
        api_key = self._resolve_api_key(provider, resolved_sources)
        return ProviderRuntimeConfig(
            provider=provider,
            model=model,
            chunk_size=chunk_size,
            api_key=api_key,
        )

    def _resolve_api_key(self, provider: str, sources: RuntimeConfigSources) -> str | None:
        """Resolve the provider API key from CLI, secure storage, env, then config."""

        cli_value = self._normalized_lookup(sources.cli, "api_key")
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, f"{provider}_api_key")
        if secure_value is not None:
            return secure_value

        env_value = self._normalized_lookup(sources.env, PROVIDER_API_KEY_ENV[provider])
        if env_value is not None:
            return env_value

        return normalize_optional_string(self.api_key)

    def _resolve_runtime_value(
        self,
        key: str,
        env_key: str,
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a runtime value from sources in deterministic precedence order."""

        cli_value = self._normalized_lookup(sources.cli, key)
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, key)
        if secure_value is not None:
            return secure_value

        env_value = self._normalized_lookup(sources.env, env_key)
        if env_value is not None:
            return env_value

        normalized_default = normalize_optional_string(default_value)
        if normalized_default is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or settings."
            )
        return normalized_default

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _validate_provider_id(provider_id: str) -> None:
        """Validate provider identifiers against supported providers."""

        if provider_id.strip().lower() not in SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(SUPPORTED_PROVIDER_IDS)
            raise ValueError(f"Unsupported provider `{provider_id}`; supported: {supported}.")


class ConfigLoader:
    """Factory methods for creating `ExtractionConfig` from external sources."""

    _REQUIRED_YAML_KEYS = frozenset({"input_pdf"})
    _SUPPORTED_YAML_KEYS = frozenset(
        {
            "input_pdf",
            "output_dir",
            "page_start",
            "page_end",
            "provider",
            "model",
            "api_key",
            "chunk_size",
            "target_language",
            "source_language",
            "timeout_seconds",
            "cache_path",
            "use_cache",
            "password",
        }
    )
    _RUNTIME_ENV_KEYS = frozenset(
        {"DOCEXPERT_PROVIDER", "DOCEXPERT_MODEL", "DOCEXPERT_CHUNK_SIZE"}
        | set(PROVIDER_API_KEY_ENV.values())
    )

    @staticmethod
    def from_yaml(path: Path) -> ExtractionConfig:
        """Create a validated config from a YAML file."""

        payload = ConfigLoader._parse_yaml_payload(path.read_text(encoding="utf-8"), path)
        return ConfigLoader._build_config_from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> ExtractionConfig:
        """Create a validated config from `DOCEXPERT_*` environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env

        input_pdf = ConfigLoader._optional_env_string(env_map, "DOCEXPERT_INPUT_PDF")
        if input_pdf is None:
            raise ValueError("Environment variable `DOCEXPERT_INPUT_PDF` is required.")
        output_dir = ConfigLoader._optional_env_string(env_map, "DOCEXPERT_OUTPUT_DIR") or "out"
        page_start = ConfigLoader._optional_env_positive_int(env_map, "DOCEXPERT_PAGE_START") or 1
        page_end = ConfigLoader._optional_env_positive_int(env_map, "DOCEXPERT_PAGE_END")
        target_language = ConfigLoader._optional_env_string(env_map, "DOCEXPERT_TARGET_LANGUAGE")
        source_language = (
            ConfigLoader._optional_env_string(env_map, "DOCEXPERT_SOURCE_LANGUAGE") or "auto"
        )
        timeout_text = ConfigLoader._optional_env_string(env_map, "DOCEXPERT_TIMEOUT_SECONDS")
        timeout_seconds = (
            parse_positive_float(timeout_text, "DOCEXPERT_TIMEOUT_SECONDS")
            if timeout_text is not None
            else DEFAULT_TIMEOUT_SECONDS
        )
        cache_path = ConfigLoader._optional_env_string(env_map, CACHE_PATH_ENV)
        use_cache = ConfigLoader._optional_env_boolean(env_map, "DOCEXPERT_USE_CACHE")

        runtime_env = {
            key: value
            for key, value in env_map.items()
            if key in ConfigLoader._RUNTIME_ENV_KEYS
            and normalize_optional_string(value) is not None
        }

        config = ExtractionConfig(
            input_pdf=Path(input_pdf),
            output_dir=Path(output_dir),
            page_start=page_start,
            page_end=page_end,
            target_language=target_language,
            source_language=source_language,
            timeout_seconds=timeout_seconds,
            cache_path=Path(cache_path) if cache_path is not None else None,
            use_cache=True if use_cache is None else use_cache,
            runtime_sources=RuntimeConfigSources(env=runtime_env),
        )
        config.validate()
        return config

    @staticmethod
    def _parse_yaml_payload(raw_text: str, path: Path) -> Mapping[str, Any]:
        """Parse YAML text and enforce a mapping root payload."""

        try:
            payload = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"YAML config `{path}` could not be parsed: {exc}") from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return payload

    @staticmethod
    def _build_config_from_mapping(
        payload: Mapping[str, Any], source_label: str
    ) -> ExtractionConfig:
        """Build a validated config from a normalized mapping payload."""

        ConfigLoader._validate_yaml_keys(payload, source_label)

        input_pdf = ConfigLoader._optional_string(payload, "input_pdf")
        if input_pdf is None:
            raise ValueError(f"{source_label} requires non-empty `input_pdf`.")
        output_dir = ConfigLoader._optional_string(payload, "output_dir") or "out"
        cache_path = ConfigLoader._optional_string(payload, "cache_path")

        config = ExtractionConfig(
            input_pdf=Path(input_pdf),
            output_dir=Path(output_dir),
            page_start=ConfigLoader._optional_int(payload, "page_start", source_label) or 1,
            page_end=ConfigLoader._optional_int(payload, "page_end", source_label),
            provider=ConfigLoader._optional_string(payload, "provider"),
            model=ConfigLoader._optional_string(payload, "model"),
            api_key=ConfigLoader._optional_string(payload, "api_key"),
            chunk_size=ConfigLoader._optional_int(payload, "chunk_size", source_label),
            target_language=ConfigLoader._optional_string(payload, "target_language"),
            source_language=ConfigLoader._optional_string(payload, "source_language") or "auto",
            timeout_seconds=ConfigLoader._optional_float(
                payload, "timeout_seconds", source_label, default=DEFAULT_TIMEOUT_SECONDS
            ),
            cache_path=Path(cache_path) if cache_path is not None else None,
            use_cache=ConfigLoader._optional_boolean(payload, "use_cache", source_label, True),
            password=ConfigLoader._optional_string(payload, "password"),
        )
        try:
            config.validate()
        except ValueError as exc:
            raise ValueError(f"{source_label}: {exc}") from exc
        return config

    @staticmethod
    def _validate_yaml_keys(payload: Mapping[str, Any], source_label: str) -> None:
        """Validate supported and required YAML keys."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_YAML_KEYS))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        missing = sorted(key for key in ConfigLoader._REQUIRED_YAML_KEYS if key not in payload)
        if missing:
            raise ValueError(f"{source_label} is missing required key(s): {', '.join(missing)}.")

    @staticmethod
    def _optional_string(payload: Mapping[str, Any], key: str) -> str | None:
        """Read an optional string field and normalize blank values to `None`."""

        if key not in payload:
            return None
        return normalize_optional_string(payload[key])

    @staticmethod
    def _optional_int(payload: Mapping[str, Any], key: str, source_label: str) -> int | None:
        """Read an optional positive integer field."""

        if key not in payload or payload[key] is None:
            return None
        try:
            return parse_positive_int(payload[key], key)
        except ValueError as exc:
            raise ValueError(f"{source_label} field {exc}") from exc

    @staticmethod
    def _optional_float(
        payload: Mapping[str, Any], key: str, source_label: str, default: float
    ) -> float:
        """Read an optional positive number field."""

        if key not in payload or payload[key] is None:
            return default
        try:
            return parse_positive_float(payload[key], key)
        except ValueError as exc:
            raise ValueError(f"{source_label} field {exc}") from exc

    @staticmethod
    def _optional_boolean(
        payload: Mapping[str, Any], key: str, source_label: str, default: bool
    ) -> bool:
        """Read and validate a boolean field from a payload."""

        if key not in payload:
            return default
        parsed = parse_permissive_boolean(payload[key])
        if parsed is None:
            raise ValueError(
                f"{source_label} field `{key}` must be a boolean value "
                "(`true`/`false`, `1`/`0`, `yes`/`no`)."
            )
        return parsed

    @staticmethod
    def _optional_env_string(env: Mapping[str, str], key: str) -> str | None:
        """Read and normalize optional string environment variable values."""

        if key not in env:
            return None
        return normalize_optional_string(env.get(key))

    @staticmethod
    def _optional_env_positive_int(env: Mapping[str, str], key: str) -> int | None:
        """Read an optional positive integer from environment mapping."""

        raw_value = ConfigLoader._optional_env_string(env, key)
        if raw_value is None:
            return None
        try:
            return parse_positive_int(raw_value, key)
        except ValueError as exc:
            raise ValueError(f"Environment variable `{key}` must be a positive integer.") from exc

    @staticmethod
    def _optional_env_boolean(env: Mapping[str, str], key: str) -> bool | None:
        """Read an optional boolean from environment mapping."""

        if key not in env:
            return None
        parsed = parse_permissive_boolean(env.get(key))
        if parsed is None:
            raise ValueError(
                f"Environment variable `{key}` must be a boolean value "
                "(`true`/`false`, `1`/`0`, `yes`/`no`)."
            )
        return parsed
