"""Shared fixtures: stub generation backends and a clean environment."""

import asyncio

import pytest

from standup.generation import GenerationAdapter, GenerationParams

ENV_KEYS = [
    "GENERATION_BACKEND",
    "LLM_MODEL",
    "GATEWAY_URL",
    "GATEWAY_API_KEY",
    "INFERENCE_URL",
    "INFERENCE_API_KEY",
    "HUGGINGFACE_API_KEY",
    "TEMPERATURE",
    "MAX_NEW_TOKENS",
    "TOP_P",
    "GENERATION_TIMEOUT",
    "MIN_GENERATED_CHARS",
    "MAX_RETRIES",
    "MAX_SECTION_BULLETS",
    "MAX_BULLET_LENGTH",
    "DEDUP_THRESHOLD",
    "TAXONOMY_PATH",
    "EXTRACTION_PROMPT",
    "REPORTS_ENDPOINT",
    "REPORTS_API_KEY",
    "VERBOSE",
]


class StubBackend:
    """Backend with a FIFO queue of payloads or exceptions."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def complete(self, prompt, model, params):
        self.calls.append({"prompt": prompt, "model": model, "params": params})
        if not self.responses:
            raise RuntimeError("StubBackend was called without a queued response")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class SlowBackend:
    """Backend that never answers within any sensible deadline."""

    def __init__(self):
        self.calls = 0

    async def complete(self, prompt, model, params):
        self.calls += 1
        await asyncio.sleep(30)
        return "never"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep host environment variables out of every test."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_adapter():
    """Build an adapter around a stub backend with a short timeout."""

    def _make(backend, timeout_s=0.05, max_retries=2, min_chars=20):
        return GenerationAdapter(
            backend,
            params=GenerationParams(timeout_s=timeout_s),
            min_chars=min_chars,
            max_retries=max_retries,
        )

    return _make
