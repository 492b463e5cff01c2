from __future__ import annotations

import os
from pathlib import Path
from functools import lru_cache
from typing import Optional

import httpx
from loguru import logger
from langchain_openai import ChatOpenAI
from dotenv import load_dotenv

from .errors import ConfigurationError


DEFAULT_MODEL = "gpt-4o-mini"
PROFILE_TEMPERATURE = 0.5
TURN_TEMPERATURE = 0.7


# Load env from the project root first, then the working directory
here = Path(__file__).resolve().parents[1]
for env_path in (here / ".env", Path.cwd() / ".env"):
    if env_path.is_file():
        load_dotenv(dotenv_path=str(env_path), override=False)
        break


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={raw!r}; using {default}")
        return default


def require_api_key() -> str:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        logger.error("OPENAI_API_KEY not set; cannot initialize OpenAI chat client")
        raise ConfigurationError("OPENAI_API_KEY is not set")
    return api_key


def build_openai_chat(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    json_mode: bool = True,
    http_async_client: Optional[httpx.AsyncClient] = None,
) -> ChatOpenAI:
    """Build a LangChain ChatOpenAI client using env configuration.

    Env vars:
      - OPENAI_API_KEY (required; ConfigurationError when missing)
      - OPENAI_MODEL (optional; default: gpt-4o-mini)
      - OPENAI_MAX_TOKENS (optional; default: 1024)
      - OPENAI_BASE_URL (optional; alternate API endpoint)

    With ``json_mode`` the service is asked for a single JSON object. Pass
    ``http_async_client`` to keep async connections on one event loop instead
    of the process-wide pool.
    """
    api_key = require_api_key()
    mdl = model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL)
    if temperature is None:
        temperature = env_float("OPENAI_TEMPERATURE", TURN_TEMPERATURE)
    try:
        max_tokens = int(os.getenv("OPENAI_MAX_TOKENS", "1024"))
    except ValueError:
        max_tokens = None
    logger.debug(f"Initializing OpenAI chat model={mdl} temperature={temperature} json_mode={json_mode}")
    kwargs = {"model": mdl, "temperature": temperature, "api_key": api_key}
    if max_tokens:
        kwargs["max_tokens"] = max_tokens
    if json_mode:
        kwargs["model_kwargs"] = {"response_format": {"type": "json_object"}}
    base_url = os.getenv("OPENAI_BASE_URL")
    if base_url:
        kwargs["base_url"] = base_url
    if http_async_client is not None:
        kwargs["http_async_client"] = http_async_client
    return ChatOpenAI(**kwargs)


@lru_cache(maxsize=8)
def get_openai_chat(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    json_mode: bool = True,
) -> ChatOpenAI:
    """Cached variant of build_openai_chat sharing the default connection pool."""
    return build_openai_chat(model=model, temperature=temperature, json_mode=json_mode)


def get_profile_chat(http_async_client: Optional[httpx.AsyncClient] = None) -> ChatOpenAI:
    model = os.getenv("OPENAI_PROFILE_MODEL") or None
    temperature = env_float("OPENAI_PROFILE_TEMPERATURE", PROFILE_TEMPERATURE)
    if http_async_client is None:
        return get_openai_chat(model=model, temperature=temperature)
    return build_openai_chat(model=model, temperature=temperature, http_async_client=http_async_client)


def get_turn_chat(http_async_client: Optional[httpx.AsyncClient] = None) -> ChatOpenAI:
    temperature = env_float("OPENAI_TURN_TEMPERATURE", TURN_TEMPERATURE)
    if http_async_client is None:
        return get_openai_chat(temperature=temperature)
    return build_openai_chat(temperature=temperature, http_async_client=http_async_client)
