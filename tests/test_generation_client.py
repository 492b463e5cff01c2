import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from companion import llm
from companion.agents import OrchestratorAgent, render_history
from companion.client import GenerationClient
from companion.errors import ConfigurationError, GenerationError
from companion.generator import build_profile_messages, generate_persona_profile
from companion.schemas import Region
from companion.states import Message, Role, SimulationSettings

from conftest import PROFILE_PAYLOAD, TURN_PAYLOAD, RecordingChat


@pytest.fixture
def history():
    return [
        Message(role=Role.ASSISTANT, content="Greetings. I am Qin Shi Huang."),
        Message(role=Role.USER, content="Why did you build the wall?"),
        Message(role=Role.ASSISTANT, content="To hold back the northern tribes."),
    ]


def test_render_history_labels_roles(history) -> None:
    assert render_history(history) == (
        "Historical Figure: Greetings. I am Qin Shi Huang.\n"
        "Student: Why did you build the wall?\n"
        "Historical Figure: To hold back the northern tribes."
    )


def test_render_history_empty() -> None:
    assert render_history([]) == ""


def test_profile_messages_name_subject_language_and_schema() -> None:
    system, prompt = build_profile_messages("Cleopatra", "French")
    assert isinstance(system, SystemMessage)
    assert isinstance(prompt, HumanMessage)
    assert "MIDDLE_EASTERN" in system.content
    assert "key_achievements" in system.content
    assert prompt.content == "Generate a historical profile for: Cleopatra. Language: French."


@pytest.mark.asyncio
async def test_generate_persona_profile_with_fake_model() -> None:
    fake = FakeListChatModel(responses=[json.dumps(PROFILE_PAYLOAD)])
    profile = await generate_persona_profile("Qin Shi Huang", "English", llm=fake)
    assert profile.name == "Qin Shi Huang"
    assert profile.region is Region.EASTERN


@pytest.mark.asyncio
async def test_generate_persona_profile_wraps_service_errors() -> None:
    chat = RecordingChat(RuntimeError("503 upstream"))
    with pytest.raises(GenerationError) as info:
        await generate_persona_profile("Qin Shi Huang", "English", llm=chat)
    assert isinstance(info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_generate_persona_profile_rejects_partial_payload() -> None:
    partial = {k: v for k, v in PROFILE_PAYLOAD.items() if k != "era"}
    chat = RecordingChat(json.dumps(partial))
    with pytest.raises(GenerationError):
        await generate_persona_profile("Qin Shi Huang", "English", llm=chat)


@pytest.mark.asyncio
async def test_generate_persona_profile_validates_inputs() -> None:
    chat = RecordingChat(json.dumps(PROFILE_PAYLOAD))
    with pytest.raises(ValueError):
        await generate_persona_profile("   ", "English", llm=chat)
    with pytest.raises(ValueError):
        await generate_persona_profile("Qin Shi Huang", "Klingon", llm=chat)
    assert chat.calls == []


def test_orchestrator_system_instruction_encodes_settings() -> None:
    settings = SimulationSettings("Joan of Arc", "Elementary (Grade 1-5)", "Spanish")
    agent = OrchestratorAgent(settings, llm=RecordingChat())
    system = agent.build_system().content
    assert "Joan of Arc" in system
    assert "Elementary (Grade 1-5)" in system
    assert "Spanish" in system
    assert "Advisor" in system and "Critiquer" in system and "Workspace Updater" in system
    assert "teacher_note" in system


def test_orchestrator_prompt_holds_history_and_question(settings, history) -> None:
    agent = OrchestratorAgent(settings, llm=RecordingChat())
    prompt = agent.build_prompt("What about the terracotta army?", history).content
    assert "Student: Why did you build the wall?" in prompt
    assert "Current Student Question: What about the terracotta army?" in prompt
    assert prompt.count("terracotta") == 1


@pytest.mark.asyncio
async def test_send_turn_round_trip(settings, history) -> None:
    turn_llm = RecordingChat(json.dumps(TURN_PAYLOAD))
    client = GenerationClient(profile_llm=RecordingChat(), turn_llm=turn_llm)
    response = await client.send_turn("What about the terracotta army?", history, settings)
    assert response.model_dump() == TURN_PAYLOAD
    sent = turn_llm.calls[0]
    assert isinstance(sent[0], SystemMessage)
    assert "Why did you build the wall?" in sent[1].content


@pytest.mark.asyncio
async def test_send_turn_empty_payload_is_generation_error(settings) -> None:
    client = GenerationClient(profile_llm=RecordingChat(), turn_llm=RecordingChat(""))
    with pytest.raises(GenerationError):
        await client.send_turn("Hello", [], settings)


@pytest.mark.asyncio
async def test_send_turn_service_failure_is_generation_error(settings) -> None:
    client = GenerationClient(profile_llm=RecordingChat(), turn_llm=RecordingChat(TimeoutError("slow")))
    with pytest.raises(GenerationError):
        await client.send_turn("Hello", [], settings)


@pytest.mark.asyncio
async def test_client_profile_uses_profile_model() -> None:
    profile_llm = FakeListChatModel(responses=[json.dumps(PROFILE_PAYLOAD)])
    client = GenerationClient(profile_llm=profile_llm, turn_llm=RecordingChat())
    profile = await client.generate_persona_profile("Qin Shi Huang", "English")
    assert profile.title == "First Emperor of Qin"


def test_missing_credential_is_configuration_error(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    llm.get_openai_chat.cache_clear()
    with pytest.raises(ConfigurationError):
        GenerationClient()
    llm.get_openai_chat.cache_clear()


def test_env_float_falls_back_on_bad_values(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_TURN_TEMPERATURE", "warm")
    assert llm.env_float("OPENAI_TURN_TEMPERATURE", 0.7) == 0.7
    monkeypatch.setenv("OPENAI_TURN_TEMPERATURE", "0.2")
    assert llm.env_float("OPENAI_TURN_TEMPERATURE", 0.7) == 0.2
