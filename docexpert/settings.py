"""User settings persisted as JSON.

Responsibilities:
- Hold the selected provider, per-provider model names, and pages per request.
- Deep-merge stored values over defaults so partial files stay valid.
- Read settings once per run; chunk boundaries never change mid-run.

Key types:
- `Settings`: immutable snapshot of user settings.
- `SettingsStore`: JSON file persistence for `Settings`.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

SUPPORTED_PROVIDER_IDS = ("google", "openai", "openrouter", "mistral")
SETTINGS_PATH_ENV = "DOCEXPERT_SETTINGS_PATH"

DEFAULT_PROVIDER = "google"
DEFAULT_PDF_CHUNK_SIZE = 5
DEFAULT_MODELS: dict[str, str] = {
    "google": "gemini-3-flash-preview",
    "openai": "gpt-4o",
    "openrouter": "google/gemini-2.5-flash",
    "mistral": "mistral-ocr-latest",
}


def default_settings_path(env: Mapping[str, str] | None = None) -> Path:
    """Return the settings path from `DOCEXPERT_SETTINGS_PATH` or the home default."""

    env_map: Mapping[str, str] = os.environ if env is None else env
    override = (env_map.get(SETTINGS_PATH_ENV) or "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".docexpert" / "settings.json"


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return `base` updated recursively with `override` values."""

    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass(frozen=True, slots=True)
class Settings:
    """User-facing extraction settings.

    Attributes:
        provider: Selected provider identifier.
        models: Model identifier per provider.
        pdf_chunk_size: Pages sent per AI request.
    """

    provider: str = DEFAULT_PROVIDER
    models: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_MODELS))
    pdf_chunk_size: int = DEFAULT_PDF_CHUNK_SIZE

    @property
    def model(self) -> str:
        """Return the model configured for the selected provider."""

        return self.models.get(self.provider) or DEFAULT_MODELS.get(self.provider, "")

    def validate(self) -> None:
        """Validate provider identifier and chunk size."""

        if self.provider not in SUPPORTED_PROVIDER_IDS:
            supported = ", ".join(SUPPORTED_PROVIDER_IDS)
            raise ValueError(f"Unsupported provider `{self.provider}`; supported: {supported}.")
        if (
            isinstance(self.pdf_chunk_size, bool)
            or not isinstance(self.pdf_chunk_size, int)
            or self.pdf_chunk_size < 1
        ):
            raise ValueError("`pdf_chunk_size` must be a positive integer.")
        for provider_id, model in self.models.items():
            if not isinstance(model, str) or not model.strip():
                raise ValueError(f"Model for provider `{provider_id}` must be a non-empty string.")

    def with_model(self, provider_id: str, model: str) -> Settings:
        """Return settings with one provider's model replaced."""

        models = dict(self.models)
        models[provider_id] = model
        return replace(self, models=models)

    def as_payload(self) -> dict[str, Any]:
        """Return a JSON-serializable representation."""

        return {
            "provider": self.provider,
            "models": dict(self.models),
            "pdf_chunk_size": self.pdf_chunk_size,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Settings:
        """Build validated settings from a stored payload merged over defaults."""

        merged = _deep_merge(cls().as_payload(), payload)
        models = merged.get("models")
        if not isinstance(models, dict):
            raise ValueError("Settings field `models` must be an object.")
        settings = cls(
            provider=str(merged.get("provider", DEFAULT_PROVIDER)).strip().lower(),
            models={str(key): str(value).strip() for key, value in models.items()},
            pdf_chunk_size=merged.get("pdf_chunk_size"),
        )
        settings.validate()
        return settings


class SettingsStore:
    """JSON file persistence for user settings."""

    def __init__(self, path: Path | None = None) -> None:
        """Initialize the store with an explicit path or the default location."""

        self.path = path if path is not None else default_settings_path()

    def load(self) -> Settings:
        """Load settings, returning defaults when the file does not exist.

        Raises:
            ValueError: If the file is not valid JSON or holds invalid values.
        """

        if not self.path.exists():
            return Settings()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Settings file `{self.path}` is not valid JSON: {exc.msg}.") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"Settings file `{self.path}` must contain a JSON object.")
        return Settings.from_payload(payload)

    def save(self, settings: Settings) -> Path:
        """Validate and persist settings, returning the file path."""

        settings.validate()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(settings.as_payload(), ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        return self.path

    def update(
        self,
        *,
        provider: str | None = None,
        model: str | None = None,
        pdf_chunk_size: int | None = None,
    ) -> Settings:
        """Apply changes to stored settings, persist them, and return the result.

        `model` applies to `provider` when given, else to the stored provider.
        """

        settings = self.load()
        if provider is not None:
            settings = replace(settings, provider=provider.strip().lower())
        if model is not None:
            settings = settings.with_model(settings.provider, model.strip())
        if pdf_chunk_size is not None:
            settings = replace(settings, pdf_chunk_size=pdf_chunk_size)
        self.save(settings)
        return settings
