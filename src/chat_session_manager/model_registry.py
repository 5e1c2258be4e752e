# chat_session_manager/model_registry.py
"""
Static registry of supported completion models.

A flat table of ModelSpec values keyed by lower-case model name. Lookups are
exact (after trimming whitespace and lower-casing); there is no prefix or
version matching.
"""

from __future__ import annotations

from chat_session_manager.exceptions import ModelNotFound
from chat_session_manager.models.model_spec import ModelFamily, ModelSpec

# Ref: https://platform.openai.com/docs/models
GPT4_PREVIEW_CONTEXT = 128_000
GPT4_CONTEXT = 8192
GPT4_32K_CONTEXT = 32768
GPT35_CONTEXT = 16385


def _spec(name: str, context_length: int, family: ModelFamily) -> tuple[str, ModelSpec]:
    return name, ModelSpec(name=name, context_length=context_length, family=family)


MODEL_REGISTRY: dict[str, ModelSpec] = dict(
    [
        # gpt-4 preview / turbo
        _spec("gpt-4-turbo", GPT4_PREVIEW_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-turbo-preview", GPT4_PREVIEW_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-0125-preview", GPT4_PREVIEW_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-1106-preview", GPT4_PREVIEW_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-1106-vision-preview", GPT4_PREVIEW_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-vision-preview", GPT4_PREVIEW_CONTEXT, ModelFamily.GPT4),
        # gpt-4
        _spec("gpt-4", GPT4_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-0613", GPT4_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-32k", GPT4_32K_CONTEXT, ModelFamily.GPT4),
        _spec("gpt-4-32k-0613", GPT4_32K_CONTEXT, ModelFamily.GPT4),
        # gpt-3.5
        _spec("gpt-3.5-turbo", GPT35_CONTEXT, ModelFamily.GPT35),
        _spec("gpt-3.5-turbo-0125", GPT35_CONTEXT, ModelFamily.GPT35),
        _spec("gpt-3.5-turbo-1106", GPT35_CONTEXT, ModelFamily.GPT35),
    ]
)


def _normalize(name: str) -> str:
    return name.strip().lower()


def lookup_model(name: str) -> ModelSpec:
    """Return the spec for ``name`` or raise ModelNotFound."""
    spec = MODEL_REGISTRY.get(_normalize(name))
    if spec is None:
        raise ModelNotFound(name)
    return spec


def is_known_model(name: str) -> bool:
    return _normalize(name) in MODEL_REGISTRY


def available_models() -> list[str]:
    """Sorted names of every registered model."""
    return sorted(MODEL_REGISTRY)
