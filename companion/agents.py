from __future__ import annotations

import time
from typing import List, Optional, Sequence

from loguru import logger
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import SystemMessage, HumanMessage

from .errors import GenerationError
from .llm import get_turn_chat
from .prompts import load_prompt, message_text
from .schemas import OrchestratorResponse, decode_orchestrator_response, schema_text
from .states import Message, Role, SimulationSettings


_DEFAULT_PROMPT = (
    "You are the orchestrator of a roleplay between a student and {target_person}. "
    "Student Grade Level: {student_grade}. Language: {language}. "
    "Reply in the first person as {target_person}, in {language}, appropriate for the grade, "
    "and analyze the student's learning for the teacher. Respond with a single JSON object."
)

_SYSTEM_TEMPLATE = load_prompt("orchestrator_prompt.md", _DEFAULT_PROMPT)

SPEAKER_LABELS = {
    Role.USER: "Student",
    Role.ASSISTANT: "Historical Figure",
}


def render_history(history: Sequence[Message]) -> str:
    return "\n".join(f"{SPEAKER_LABELS[m.role]}: {m.content}" for m in history)


class OrchestratorAgent:
    """Plays the historical figure for one session and reports analytics per turn.

    One structured call per turn covers the persona reply, its safety/grade
    review and the teacher analytics, so the reply and the analytics always
    come from the same generation pass.
    """

    def __init__(self, settings: SimulationSettings, llm: Optional[BaseChatModel] = None) -> None:
        self.settings = settings
        self.llm = llm if llm is not None else get_turn_chat()
        self.system_template = _SYSTEM_TEMPLATE

    def build_system(self) -> SystemMessage:
        instruction = self.system_template.format(
            target_person=self.settings.target_person,
            student_grade=self.settings.student_grade,
            language=self.settings.language,
        )
        return SystemMessage(content=f"{instruction}\n\nJSON_SCHEMA:\n{schema_text(OrchestratorResponse)}")

    def build_prompt(self, message: str, history: Sequence[Message]) -> HumanMessage:
        blocks: List[str] = [
            f"Conversation History:\n{render_history(history)}",
            f"Current Student Question: {message}",
            "Generate the response object following the Orchestrator logic.",
        ]
        return HumanMessage(content="\n\n".join(blocks))

    async def respond(self, message: str, history: Sequence[Message]) -> OrchestratorResponse:
        messages = [self.build_system(), self.build_prompt(message, history)]
        person = self.settings.target_person
        t0 = time.perf_counter()
        try:
            result = await self.llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"llm_call_failed | kind=turn persona={person} | {e}")
            raise GenerationError(f"Turn generation failed for {person}") from e
        dt = time.perf_counter() - t0
        logger.info(f"llm_call | kind=turn persona={person} history={len(history)} dt={dt:.2f}s")
        return decode_orchestrator_response(message_text(result))
