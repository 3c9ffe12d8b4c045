"""Unit tests for YAML/environment configuration loader behavior."""

from __future__ import annotations

from pathlib import Path

import pytest

from docexpert.config import ConfigLoader, ExtractionConfig, RuntimeConfigSources
from docexpert.models import PageRange, TranslationConfig
from docexpert.settings import Settings


def test_config_loader_from_yaml_loads_valid_config_and_normalizes_values(
    tmp_path: Path,
) -> None:
    """YAML loader should parse valid payloads and normalize typed/blank values."""

    config_path = tmp_path / "docexpert.yml"
    config_path.write_text(
        """
input_pdf: " scans/report.pdf "
output_dir: " out "
page_start: 3
page_end: " 40 "
provider: " openrouter "
model: " google/gemini-2.5-flash "
api_key: " test-key "
chunk_size: " 4 "
target_language: " English "
source_language: "   "
timeout_seconds: 120
use_cache: " no "
password: "   "
""".strip(),
        encoding="utf-8",
    )

    config = ConfigLoader.from_yaml(config_path)

    assert config.input_pdf == Path("scans/report.pdf")
    assert config.output_dir == Path("out")
    assert config.page_start == 3
    assert config.page_end == 40
    assert config.provider == "openrouter"
    assert config.model == "google/gemini-2.5-flash"
    assert config.api_key == "test-key"
    assert config.chunk_size == 4
    assert config.target_language == "English"
    assert config.source_language == "auto"
    assert config.timeout_seconds == 120.0
    assert config.use_cache is False
    assert config.password is None
    assert config.translation == TranslationConfig(target_language="English")


def test_config_loader_from_yaml_rejects_missing_and_unknown_keys(tmp_path: Path) -> None:
    """YAML loader should fail clearly on missing required or unknown fields."""

    missing_path = tmp_path / "missing.yml"
    missing_path.write_text("output_dir: out\n", encoding="utf-8")

    with pytest.raises(ValueError, match=r"missing required key\(s\): input_pdf"):
        ConfigLoader.from_yaml(missing_path)

    unknown_path = tmp_path / "unknown.yml"
    unknown_path.write_text(
        """
input_pdf: in.pdf
output_dir: out
unknown_field: x
""".strip(),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match=r"unsupported key\(s\): unknown_field"):
        ConfigLoader.from_yaml(unknown_path)


def test_config_loader_from_yaml_rejects_invalid_typed_values(tmp_path: Path) -> None:
    """YAML loader should reject invalid typed tokens with actionable errors."""

    invalid_bool_path = tmp_path / "invalid-bool.yml"
    invalid_bool_path.write_text("input_pdf: in.pdf\nuse_cache: maybe\n", encoding="utf-8")

    with pytest.raises(ValueError, match="`use_cache` must be a boolean"):
        ConfigLoader.from_yaml(invalid_bool_path)

    invalid_int_path = tmp_path / "invalid-int.yml"
    invalid_int_path.write_text("input_pdf: in.pdf\nchunk_size: x\n", encoding="utf-8")

    with pytest.raises(ValueError, match="`chunk_size` must be a positive integer"):
        ConfigLoader.from_yaml(invalid_int_path)

    invalid_provider_path = tmp_path / "invalid-provider.yml"
    invalid_provider_path.write_text("input_pdf: in.pdf\nprovider: anthropic\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported provider `anthropic`"):
        ConfigLoader.from_yaml(invalid_provider_path)


def test_config_loader_from_yaml_rejects_non_mapping_and_broken_yaml(tmp_path: Path) -> None:
    """YAML loader should require a mapping root and valid YAML syntax."""

    list_path = tmp_path / "list.yml"
    list_path.write_text("- in.pdf\n", encoding="utf-8")
    with pytest.raises(ValueError, match="top-level mapping"):
        ConfigLoader.from_yaml(list_path)

    broken_path = tmp_path / "broken.yml"
    broken_path.write_text("input_pdf: [unterminated\n", encoding="utf-8")
    with pytest.raises(ValueError, match="could not be parsed"):
        ConfigLoader.from_yaml(broken_path)


def test_config_loader_from_env_loads_runtime_values_and_normalizes_blanks() -> None:
    """Environment loader should parse run keys and keep runtime keys as a source."""

    env = {
        "DOCEXPERT_INPUT_PDF": " scans/report.pdf ",
        "DOCEXPERT_OUTPUT_DIR": " exports ",
        "DOCEXPERT_PAGE_START": "2",
        "DOCEXPERT_PAGE_END": "   ",
        "DOCEXPERT_TARGET_LANGUAGE": " Kurdish ",
        "DOCEXPERT_TIMEOUT_SECONDS": "60",
        "DOCEXPERT_USE_CACHE": " off ",
        "DOCEXPERT_PROVIDER": " openai ",
        "OPENAI_API_KEY": " env-api-key ",
        "GOOGLE_API_KEY": "  ",
        "UNRELATED": "x",
    }

    config = ConfigLoader.from_env(env)

    assert config.input_pdf == Path("scans/report.pdf")
    assert config.output_dir == Path("exports")
    assert config.page_start == 2
    assert config.page_end is None
    assert config.target_language == "Kurdish"
    assert config.timeout_seconds == 60.0
    assert config.use_cache is False
    assert dict(config.runtime_sources.env) == {
        "DOCEXPERT_PROVIDER": " openai ",
        "OPENAI_API_KEY": " env-api-key ",
    }

    runtime = config.resolved_provider_runtime()
    assert runtime.provider == "openai"
    assert runtime.model == "gpt-4o"
    assert runtime.api_key == "env-api-key"


def test_config_loader_from_env_requires_input_and_valid_booleans() -> None:
    """Environment loader should fail clearly for missing input and bad tokens."""

    with pytest.raises(ValueError, match="`DOCEXPERT_INPUT_PDF` is required"):
        ConfigLoader.from_env({})

    with pytest.raises(ValueError, match="`DOCEXPERT_USE_CACHE` must be a boolean"):
        ConfigLoader.from_env({"DOCEXPERT_INPUT_PDF": "in.pdf", "DOCEXPERT_USE_CACHE": "maybe"})


def test_runtime_precedence_is_cli_then_secure_then_env_then_settings() -> None:
    """Each runtime value resolves from the highest-precedence source that has it."""

    config = ExtractionConfig(input_pdf=Path("in.pdf"), api_key="config-key")
    settings = Settings(provider="openrouter")

    from_settings = config.resolved_provider_runtime(RuntimeConfigSources(), settings)
    assert from_settings.provider == "openrouter"
    assert from_settings.model == "google/gemini-2.5-flash"
    assert from_settings.chunk_size == 5
    assert from_settings.api_key == "config-key"

    env = {
        "DOCEXPERT_PROVIDER": "google",
        "DOCEXPERT_CHUNK_SIZE": "7",
        "GOOGLE_API_KEY": "env-key",
    }
    from_env = config.resolved_provider_runtime(RuntimeConfigSources(env=env), settings)
    assert from_env.provider == "google"
    assert from_env.model == "gemini-3-flash-preview"
    assert from_env.chunk_size == 7
    assert from_env.api_key == "env-key"

    layered = config.resolved_provider_runtime(
        RuntimeConfigSources(
            cli={"model": "gemini-2.5-pro", "chunk_size": "2"},
            secure={"google_api_key": "secure-key"},
            env=env,
        ),
        settings,
    )
    assert layered.model == "gemini-2.5-pro"
    assert layered.chunk_size == 2
    assert layered.api_key == "secure-key"

    cli_key = config.resolved_provider_runtime(
        RuntimeConfigSources(cli={"api_key": "cli-key"}, secure={"google_api_key": "secure-key"}, env=env),
        settings,
    )
    assert cli_key.api_key == "cli-key"
    assert cli_key.as_metadata() == {
        "provider": "google",
        "model": "gemini-3-flash-preview",
        "chunk_size": "7",
    }


def test_runtime_rejects_unsupported_provider_and_bad_chunk_size() -> None:
    """Invalid runtime values fail resolution with `ValueError`."""

    config = ExtractionConfig(input_pdf=Path("in.pdf"))

    with pytest.raises(ValueError, match="Unsupported provider"):
        config.resolved_provider_runtime(RuntimeConfigSources(cli={"provider": "cohere"}))
    with pytest.raises(ValueError, match="chunk_size"):
        config.resolved_provider_runtime(RuntimeConfigSources(env={"DOCEXPERT_CHUNK_SIZE": "0"}))


def test_requested_range_defaults_to_document_end() -> None:
    """Without an explicit end the whole remaining document is requested."""

    assert ExtractionConfig(input_pdf=Path("in.pdf"), page_start=3).requested_range(9) == PageRange(3, 9)
    assert ExtractionConfig(input_pdf=Path("in.pdf"), page_end=4).requested_range(9) == PageRange(1, 4)


@pytest.mark.parametrize(
    "overrides",
    [
        {"page_start": 0},
        {"page_end": 0},
        {"chunk_size": 0},
        {"timeout_seconds": 0},
        {"provider": "cohere"},
        {"target_language": "  "},
    ],
)
def test_validate_rejects_invalid_values(overrides: dict[str, object]) -> None:
    """Config validation rejects out-of-range and unsupported values."""

    config = ExtractionConfig(input_pdf=Path("in.pdf"), **overrides)  # type: ignore[arg-type]

    with pytest.raises(ValueError):
        config.validate()


def test_cache_path_resolution(tmp_path: Path) -> None:
    """An explicit cache path wins over the environment default."""

    explicit = ExtractionConfig(input_pdf=Path("in.pdf"), cache_path=tmp_path / "explicit.sqlite3")
    implicit = ExtractionConfig(input_pdf=Path("in.pdf"))

    assert explicit.resolved_cache_path({}) == tmp_path / "explicit.sqlite3"
    assert implicit.resolved_cache_path({"DOCEXPERT_CACHE_PATH": str(tmp_path / "env.sqlite3")}) == (
        tmp_path / "env.sqlite3"
    )
