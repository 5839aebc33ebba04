"""Configuration management for standup extraction."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_MODEL = "meta-llama/Llama-3.2-3B-Instruct"
DEFAULT_INFERENCE_URL = "https://api-inference.huggingface.co/models"
DEFAULT_GATEWAY_URL = "http://localhost:8800/v1"


def _resolve_prompt(env_var_name: str, default: str) -> str:
    """
    Resolve a prompt value from environment variable.

    If env var is set to a file path that exists, read its contents.
    Otherwise use the string value directly.
    If unset, use the provided default.
    """
    value = os.getenv(env_var_name)
    if value is None:
        return default

    path = Path(value).expanduser()
    if path.exists() and path.is_file():
        return path.read_text()

    return value


def _parse_bool(value: str | None) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return False
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class Config:
    """Configuration for the extraction pipeline."""

    backend: str = "inference"
    model: str = DEFAULT_MODEL
    gateway_url: str = DEFAULT_GATEWAY_URL
    gateway_api_key: str = "not-needed"
    inference_url: str = DEFAULT_INFERENCE_URL
    inference_api_key: str = ""
    temperature: float = 0.3
    max_new_tokens: int = 500
    top_p: float = 0.9
    timeout_s: float = 90.0
    min_generated_chars: int = 20
    max_retries: int = 2
    max_section_bullets: int = 5
    max_bullet_length: int = 150
    dedup_threshold: float = 0.8
    taxonomy_path: str = ""
    # Empty means the built-in template in standup.prompt
    extraction_prompt: str = ""
    reports_endpoint: str = ""
    reports_api_key: str = ""
    verbose: bool = False


def load_config() -> Config:
    """
    Load configuration from environment variables and .env file.

    Returns:
        Config instance with all settings loaded.
    """
    load_dotenv()

    config = Config(
        backend=os.getenv("GENERATION_BACKEND", "inference").lower(),
        model=os.getenv("LLM_MODEL", DEFAULT_MODEL),
        gateway_url=os.getenv("GATEWAY_URL", DEFAULT_GATEWAY_URL),
        gateway_api_key=os.getenv("GATEWAY_API_KEY", "not-needed"),
        inference_url=os.getenv("INFERENCE_URL", DEFAULT_INFERENCE_URL),
        inference_api_key=os.getenv(
            "INFERENCE_API_KEY", os.getenv("HUGGINGFACE_API_KEY", "")
        ),
        temperature=float(os.getenv("TEMPERATURE", "0.3")),
        max_new_tokens=int(os.getenv("MAX_NEW_TOKENS", "500")),
        top_p=float(os.getenv("TOP_P", "0.9")),
        timeout_s=float(os.getenv("GENERATION_TIMEOUT", "90")),
        min_generated_chars=int(os.getenv("MIN_GENERATED_CHARS", "20")),
        max_retries=int(os.getenv("MAX_RETRIES", "2")),
        max_section_bullets=int(os.getenv("MAX_SECTION_BULLETS", "5")),
        max_bullet_length=int(os.getenv("MAX_BULLET_LENGTH", "150")),
        dedup_threshold=float(os.getenv("DEDUP_THRESHOLD", "0.8")),
        taxonomy_path=os.getenv("TAXONOMY_PATH", ""),
        reports_endpoint=os.getenv("REPORTS_ENDPOINT", ""),
        reports_api_key=os.getenv("REPORTS_API_KEY", ""),
        verbose=_parse_bool(os.getenv("VERBOSE")),
    )

    config.extraction_prompt = _resolve_prompt("EXTRACTION_PROMPT", "")

    return config
