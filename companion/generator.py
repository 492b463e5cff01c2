from __future__ import annotations

import time
from typing import Optional

from loguru import logger
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import SystemMessage, HumanMessage

from .errors import GenerationError
from .llm import get_profile_chat
from .prompts import load_prompt, message_text
from .schemas import PersonaProfile, decode_profile, schema_text
from .states import LANGUAGE_OPTIONS


_DEFAULT_PROMPT = (
    "You are a historian database. Provide a concise profile for the UI sidebar. "
    "Classify region accurately (China/Japan/Asia -> EASTERN, Europe/Americas -> WESTERN). "
    "Respond with a single JSON object."
)

_SYSTEM_PROMPT = load_prompt("persona_profile_prompt.md", _DEFAULT_PROMPT)


def build_profile_messages(target_person: str, language: str) -> list:
    system = f"{_SYSTEM_PROMPT}\n\nJSON_SCHEMA:\n{schema_text(PersonaProfile)}"
    prompt = f"Generate a historical profile for: {target_person}. Language: {language}."
    return [SystemMessage(content=system), HumanMessage(content=prompt)]


async def generate_persona_profile(
    target_person: str,
    language: str,
    llm: Optional[BaseChatModel] = None,
) -> PersonaProfile:
    """Ask the service for a PersonaProfile of ``target_person``.

    Raises GenerationError when the call fails or the payload does not decode.
    """
    subject = (target_person or "").strip()
    if not subject:
        raise ValueError("target_person must not be empty")
    if language not in LANGUAGE_OPTIONS:
        raise ValueError(f"unsupported language: {language!r}")
    if llm is None:
        llm = get_profile_chat()

    messages = build_profile_messages(subject, language)
    logger.debug(f"Generating persona profile | subject={subject} language={language}")
    t0 = time.perf_counter()
    try:
        resp = await llm.ainvoke(messages)
    except Exception as e:
        logger.error(f"llm_call_failed | kind=profile subject={subject} | {e}")
        raise GenerationError(f"Profile generation failed for {subject}") from e
    dt = time.perf_counter() - t0
    logger.info(f"llm_call | kind=profile subject={subject} dt={dt:.2f}s")
    return decode_profile(message_text(resp))
