from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pytest
from langchain_core.messages import AIMessage

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from companion.schemas import OrchestratorResponse, PersonaProfile
from companion.states import Message, SimulationSettings


PROFILE_PAYLOAD: Dict[str, Any] = {
    "name": "Qin Shi Huang",
    "title": "First Emperor of Qin",
    "era": "Qin Dynasty (221-206 BC)",
    "bio_quote": "I unified the warring states under one heaven.",
    "key_achievements": [
        "Unified China in 221 BC",
        "Standardized script, coins and measures",
        "Began the Great Wall",
    ],
    "region": "EASTERN",
    "gender": "MALE",
}

TURN_PAYLOAD: Dict[str, Any] = {
    "persona_name": "Qin Shi Huang",
    "persona_style": "Formal, proud, imperial",
    "reply": "I joined the seven kingdoms so that one law would govern all under heaven.",
    "emotion_tag": "curious",
    "emotion_guess": "interested",
    "follow_up_question": "Why do you think a single script mattered so much?",
    "teacher_note": "Student is exploring motives behind unification.",
    "student_focus": "Unification of China",
    "knowledge_covered": ["Warring States period", "Unification in 221 BC", "Legalism"],
    "possible_confusion": "Difference between Qin and Han dynasties",
}


class RecordingChat:
    """Stands in for a chat model: records the messages and replies with fixed content."""

    def __init__(self, *contents: Any) -> None:
        self.contents = list(contents)
        self.calls: List[list] = []

    async def ainvoke(self, messages, **kwargs):
        self.calls.append(list(messages))
        item = self.contents.pop(0)
        if isinstance(item, Exception):
            raise item
        return AIMessage(content=item)


class FakeClient:
    """GenerationClient double; items in ``turns`` are responses or exceptions to raise."""

    def __init__(self, profile: Any = None, turns: Sequence[Any] = ()) -> None:
        self.profile = profile
        self.turns = list(turns)
        self.profile_calls: List[tuple] = []
        self.turn_calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def generate_persona_profile(self, target_person: str, language: str) -> PersonaProfile:
        self.profile_calls.append((target_person, language))
        if isinstance(self.profile, Exception):
            raise self.profile
        return self.profile

    async def send_turn(self, message: str, history: Sequence[Message], settings: SimulationSettings):
        self.turn_calls.append((message, tuple(history), settings))
        if self.gate is not None:
            await self.gate.wait()
        item = self.turns.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def settings() -> SimulationSettings:
    return SimulationSettings("Qin Shi Huang", "Middle School (Grade 6-8)", "English")


@pytest.fixture
def profile() -> PersonaProfile:
    return PersonaProfile.model_validate(PROFILE_PAYLOAD)


@pytest.fixture
def turn_response() -> OrchestratorResponse:
    return OrchestratorResponse.model_validate(TURN_PAYLOAD)


@pytest.fixture
def make_turn():
    def _make(reply: str, **overrides: Any) -> OrchestratorResponse:
        data = dict(TURN_PAYLOAD, reply=reply)
        data.update(overrides)
        return OrchestratorResponse.model_validate(data)

    return _make
