from __future__ import annotations

from typing import Optional, Sequence

import httpx
from loguru import logger
from langchain_core.language_models import BaseChatModel

from .agents import OrchestratorAgent
from .generator import generate_persona_profile
from .llm import get_profile_chat, get_turn_chat
from .schemas import OrchestratorResponse, PersonaProfile
from .states import Message, SimulationSettings


class GenerationClient:
    """Both generation calls the session needs, bound to their chat models.

    Models are resolved at construction, so a missing credential raises
    ConfigurationError before any session can start. With ``http_async_client``
    both models use that connection pool instead of the shared default.
    """

    def __init__(
        self,
        profile_llm: Optional[BaseChatModel] = None,
        turn_llm: Optional[BaseChatModel] = None,
        http_async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.profile_llm = profile_llm if profile_llm is not None else get_profile_chat(http_async_client)
        self.turn_llm = turn_llm if turn_llm is not None else get_turn_chat(http_async_client)
        logger.debug(
            f"GenerationClient ready | profile_llm={type(self.profile_llm).__name__} "
            f"turn_llm={type(self.turn_llm).__name__}"
        )

    async def generate_persona_profile(self, target_person: str, language: str) -> PersonaProfile:
        return await generate_persona_profile(target_person, language, llm=self.profile_llm)

    async def send_turn(
        self,
        message: str,
        history: Sequence[Message],
        settings: SimulationSettings,
    ) -> OrchestratorResponse:
        agent = OrchestratorAgent(settings, llm=self.turn_llm)
        return await agent.respond(message, history)
