"""Adapter around the external text-generation endpoint."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import openai
import requests

from standup.config import Config
from standup.errors import (
    GenerationEmpty,
    GenerationTimeout,
    GenerationTransportError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationParams:
    """Bounded sampling parameters for a classification-style completion."""

    temperature: float = 0.3
    max_new_tokens: int = 500
    top_p: float = 0.9
    timeout_s: float = 90.0

    @classmethod
    def from_config(cls, config: Config) -> GenerationParams:
        return cls(
            temperature=config.temperature,
            max_new_tokens=config.max_new_tokens,
            top_p=config.top_p,
            timeout_s=config.timeout_s,
        )


class Backend(Protocol):
    """Anything that can send a prompt to a model and return its raw payload."""

    async def complete(self, prompt: str, model: str, params: GenerationParams) -> Any:
        ...


class GatewayBackend:
    """OpenAI-compatible chat completions, e.g. a local model gateway."""

    def __init__(
        self,
        base_url: str = "http://localhost:8800/v1",
        api_key: str = "not-needed",
        client: openai.AsyncOpenAI | None = None,
    ):
        self.client = client or openai.AsyncOpenAI(base_url=base_url, api_key=api_key)

    async def complete(self, prompt: str, model: str, params: GenerationParams) -> Any:
        """Send the prompt as a single user message.

        Returns:
            The message content of the first choice
        """
        response = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=params.temperature,
            max_tokens=params.max_new_tokens,
            top_p=params.top_p,
            timeout=params.timeout_s,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content


class InferenceBackend:
    """Hosted inference endpoint taking ``{"inputs", "parameters"}`` per model URL."""

    def __init__(self, base_url: str, api_key: str):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

    def _post(self, prompt: str, model: str, params: GenerationParams) -> Any:
        url = f"{self.base_url}/{model}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": params.max_new_tokens,
                "temperature": params.temperature,
                "top_p": params.top_p,
                "return_full_text": False,
                "do_sample": params.temperature > 0,
            },
        }
        resp = requests.post(url, headers=headers, json=payload, timeout=params.timeout_s)
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError:
            return resp.text
        if isinstance(data, dict) and data.get("error"):
            raise GenerationTransportError(f"Inference endpoint error: {data['error']}")
        return data

    async def complete(self, prompt: str, model: str, params: GenerationParams) -> Any:
        if not self.api_key:
            raise GenerationTransportError("INFERENCE_API_KEY not configured")
        # The worker thread is not interrupted on timeout; it finishes in the background
        return await asyncio.to_thread(self._post, prompt, model, params)


def normalize_response(payload: Any) -> str:
    """Collapse array-wrapped, object-wrapped or raw-string payloads into text.

    Handles:
    - ``[{"generated_text": "..."}]``
    - ``{"generated_text": "..."}`` (also ``text``/``content``/``output``)
    - ``{"choices": [{"message": {"content": "..."}}]}``
    - ``"..."``

    Returns:
        The generated text, or an empty string when none is found
    """
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, list):
        return normalize_response(payload[0]) if payload else ""
    if isinstance(payload, dict):
        for key in ("generated_text", "text", "content", "output"):
            value = payload.get(key)
            if isinstance(value, str):
                return value
        choices = payload.get("choices")
        if isinstance(choices, list) and choices:
            choice = choices[0]
            if isinstance(choice, dict):
                message = choice.get("message")
                if isinstance(message, dict):
                    return normalize_response(message)
                return normalize_response(choice)
    return ""


class GenerationAdapter:
    """Runs one generation call with timeout, retry and output checks."""

    def __init__(
        self,
        backend: Backend,
        params: GenerationParams | None = None,
        min_chars: int = 20,
        max_retries: int = 2,
        verbose: bool = False,
    ):
        self.backend = backend
        self.params = params or GenerationParams()
        self.min_chars = min_chars
        self.max_retries = max(0, max_retries)
        self.verbose = verbose

    async def generate(self, prompt: str, model_identifier: str) -> str:
        """Generate text for prompt with the given model.

        Transport failures are retried up to max_retries times after the first
        attempt. Timeouts and empty output are not retried. Any other exception
        from the backend is treated as a transport failure.

        Raises:
            GenerationTimeout: The call exceeded params.timeout_s
            GenerationEmpty: Normalized text shorter than min_chars
            GenerationTransportError: Network or protocol failure on every attempt
        """
        last_error: GenerationTransportError | None = None
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                payload = await asyncio.wait_for(
                    self.backend.complete(prompt, model_identifier, self.params),
                    timeout=self.params.timeout_s,
                )
            except asyncio.TimeoutError as e:
                raise GenerationTimeout(
                    f"{model_identifier} did not answer within {self.params.timeout_s}s"
                ) from e
            except (openai.APITimeoutError, requests.Timeout) as e:
                raise GenerationTimeout(f"{model_identifier} timed out: {e}") from e
            except GenerationTransportError as e:
                last_error = e
            except (openai.APIError, requests.RequestException, OSError) as e:
                last_error = GenerationTransportError(f"{type(e).__name__}: {e}")
                last_error.__cause__ = e
            except Exception as e:
                last_error = GenerationTransportError(f"Unexpected {type(e).__name__}: {e}")
                last_error.__cause__ = e
            else:
                text = normalize_response(payload).strip()
                if len(text) < self.min_chars:
                    raise GenerationEmpty(
                        f"{model_identifier} returned {len(text)} chars "
                        f"(minimum {self.min_chars})"
                    )
                if self.verbose:
                    logger.info(f"Generation succeeded on attempt {attempt + 1}")
                logger.debug(f"Generated text: {text[:200]}")
                return text

            logger.warning(
                f"Generation attempt {attempt + 1}/{attempts} failed: {last_error}"
            )

        raise last_error or GenerationTransportError("No generation attempt was made")


def get_adapter(config: Config) -> GenerationAdapter:
    """Build the generation adapter described by config.

    Raises:
        ValueError: If config.backend is not "gateway" or "inference"
    """
    if config.backend == "gateway":
        backend: Backend = GatewayBackend(
            base_url=config.gateway_url, api_key=config.gateway_api_key
        )
        where = config.gateway_url
    elif config.backend == "inference":
        backend = InferenceBackend(config.inference_url, config.inference_api_key)
        where = config.inference_url
    else:
        raise ValueError(f"Unknown generation backend: {config.backend}")

    logger.info(f"Using {config.backend} backend at {where}")
    return GenerationAdapter(
        backend,
        params=GenerationParams.from_config(config),
        min_chars=config.min_generated_chars,
        max_retries=config.max_retries,
        verbose=config.verbose,
    )
