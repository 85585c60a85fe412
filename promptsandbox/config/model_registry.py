"""Model catalog with optional YAML override and mtime-based cache."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from threading import Lock
from typing import Any

import yaml
from pydantic import ValidationError

from promptsandbox.config.settings import settings
from promptsandbox.core.errors import RegistryError
from promptsandbox.core.models import ModelDescriptor
from promptsandbox.util.logger import logger


_DEFAULT_MODELS: list[dict[str, Any]] = [
    {
        "id": "claude-opus-4.1",
        "display_name": "Claude 4.1 Opus",
        "provider_name": "Anthropic",
        "provider_model_id": "anthropic/claude-opus-4.1",
        "supports_image_attachments": True,
        "supports_non_image_attachments": True,
        "color": "bg-orange-500",
    },
    {
        "id": "grok-4",
        "display_name": "Grok 4",
        "provider_name": "xAI",
        "provider_model_id": "x-ai/grok-4",
        "supports_image_attachments": True,
        "supports_non_image_attachments": False,
        "color": "bg-purple-500",
    },
    {
        "id": "gemini-2.5-pro",
        "display_name": "Gemini 2.5 Pro",
        "provider_name": "Google",
        "provider_model_id": "google/gemini-2.5-pro",
        "supports_image_attachments": True,
        "supports_non_image_attachments": True,
        "color": "bg-blue-500",
    },
    {
        "id": "codestral-2508",
        "display_name": "Codestral",
        "provider_name": "Mistral",
        "provider_model_id": "mistralai/codestral-2508",
        "supports_image_attachments": False,
        "supports_non_image_attachments": False,
        "accepts_no_attachments": True,
        "color": "bg-green-500",
    },
]


class ModelRegistry:
    """Read-only, ordered catalog of model descriptors keyed by id."""

    def __init__(self, descriptors: Iterable[ModelDescriptor]) -> None:
        self._models: dict[str, ModelDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in self._models:
                raise RegistryError(f"duplicate model id: {descriptor.id}")
            self._models[descriptor.id] = descriptor

    @classmethod
    def from_dicts(cls, items: Iterable[dict[str, Any]]) -> "ModelRegistry":
        try:
            return cls(ModelDescriptor.model_validate(item) for item in items)
        except ValidationError as exc:
            raise RegistryError(f"invalid model descriptor: {exc}") from exc

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)

    def get(self, model_id: str) -> ModelDescriptor | None:
        return self._models.get(model_id)

    def all(self) -> list[ModelDescriptor]:
        return list(self._models.values())

    def ids(self) -> list[str]:
        return list(self._models)

    def resolve(self, model_ids: Iterable[str]) -> tuple[list[ModelDescriptor], list[str]]:
        """Split *model_ids* into known descriptors and unknown ids, keeping order."""
        known: list[ModelDescriptor] = []
        unknown: list[str] = []
        for model_id in model_ids:
            descriptor = self._models.get(model_id)
            if descriptor is None:
                unknown.append(model_id)
            else:
                known.append(descriptor)
        return known, unknown

    def display_name(self, model_id: str) -> str:
        descriptor = self._models.get(model_id)
        return descriptor.display_name if descriptor else model_id


def default_registry() -> ModelRegistry:
    return ModelRegistry.from_dicts(_DEFAULT_MODELS)


_CACHE_LOCK = Lock()
_CACHE_PATH = ""
_CACHE_MTIME_NS = -1
_CACHE_REGISTRY: ModelRegistry | None = None


def _resolve_registry_file(path: str) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    app_root = Path(__file__).resolve().parents[2]
    candidates = [Path.cwd() / candidate, app_root / candidate]
    for item in candidates:
        if item.exists():
            return item.resolve()
    return candidates[-1].resolve()


def _parse_registry_file(registry_path: Path) -> ModelRegistry:
    try:
        raw = yaml.safe_load(registry_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise RegistryError(f"model registry file is not valid YAML: {registry_path}") from exc
    if not isinstance(raw, dict) or not isinstance(raw.get("models"), list):
        raise RegistryError(f"model registry file must contain a 'models' list: {registry_path}")
    registry = ModelRegistry.from_dicts(raw["models"])
    if not len(registry):
        raise RegistryError(f"model registry file defines no models: {registry_path}")
    return registry


def load_model_registry(path: str | None = None) -> ModelRegistry:
    """Return the configured registry; built-in models when no file is configured."""
    global _CACHE_PATH, _CACHE_MTIME_NS, _CACHE_REGISTRY

    raw_path = (settings.model_registry_path if path is None else path).strip()
    if not raw_path:
        return default_registry()

    registry_path = _resolve_registry_file(raw_path)
    path_key = str(registry_path)
    mtime_ns = registry_path.stat().st_mtime_ns if registry_path.exists() else -1

    with _CACHE_LOCK:
        if _CACHE_REGISTRY is not None and _CACHE_PATH == path_key and _CACHE_MTIME_NS == mtime_ns:
            return _CACHE_REGISTRY

        if registry_path.exists():
            registry = _parse_registry_file(registry_path)
            logger.info("model registry loaded path=%s models=%d", registry_path, len(registry))
        else:
            registry = default_registry()
            logger.info("model registry file not found, using defaults path=%s", registry_path)

        _CACHE_PATH = path_key
        _CACHE_MTIME_NS = mtime_ns
        _CACHE_REGISTRY = registry
        return registry
