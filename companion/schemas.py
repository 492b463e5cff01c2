"""Structured-output contracts for the generation service.

Both payloads the service returns (the persona profile and the per-turn
orchestrator response) are described here as pydantic models. The models
double as the JSON schema sent with each request and as the validator applied
to the reply, so decoding can be exercised against fixed JSON fixtures without
a client.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any, Dict, List, Type, TypeVar

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, StringConstraints, ValidationError, field_validator

from .errors import GenerationError


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

ModelT = TypeVar("ModelT", bound=BaseModel)


class Region(str, Enum):
    EASTERN = "EASTERN"
    WESTERN = "WESTERN"
    MIDDLE_EASTERN = "MIDDLE_EASTERN"
    OTHER = "OTHER"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


def _enum_key(value: Any) -> str:
    return str(value or "").strip().upper().replace("-", "_").replace(" ", "_")


class PersonaProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: NonEmptyStr = Field(description="Full name of the historical figure (e.g. Qin Shi Huang)")
    title: NonEmptyStr = Field(description="Main title (e.g. First Emperor of Qin)")
    era: NonEmptyStr = Field(description="The era they lived in (e.g. Qin Dynasty (221-206 BC))")
    bio_quote: NonEmptyStr = Field(description="A short, impactful first-person quote describing who they are.")
    key_achievements: List[NonEmptyStr] = Field(
        min_length=1,
        description="3-4 short bullet points of their key historical achievements.",
    )
    region: Region = Field(description="Cultural background for visual style selection.")
    gender: Gender = Field(description="Gender for avatar selection.")

    @field_validator("region", mode="before")
    @classmethod
    def _region_fail_closed(cls, value: Any) -> Region:
        if isinstance(value, Region):
            return value
        key = _enum_key(value)
        if key in Region.__members__:
            return Region[key]
        logger.warning(f"profile_region_unknown | value={value!r} -> {Region.OTHER.value}")
        return Region.OTHER

    @field_validator("gender", mode="before")
    @classmethod
    def _gender_fail_closed(cls, value: Any) -> Gender:
        if isinstance(value, Gender):
            return value
        key = _enum_key(value)
        if key in Gender.__members__:
            return Gender[key]
        logger.warning(f"profile_gender_unknown | value={value!r} -> {Gender.MALE.value}")
        return Gender.MALE


class OrchestratorResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    persona_name: str = Field(description="The name of the historical figure adopted.")
    persona_style: str = Field(description="Brief description of the speaking style.")
    reply: str = Field(description="The first-person response to the student.")
    emotion_tag: str = Field(description="The detected emotion of the student (e.g., curious, confused).")
    emotion_guess: str = Field(description="Internal guess of student emotion for analytics.")
    follow_up_question: str = Field(description="A suggested follow-up question to keep engagement.")
    teacher_note: str = Field(
        description="A note for the teacher explaining the pedagogical value of this interaction."
    )
    student_focus: str = Field(description="What the student seems most interested in.")
    knowledge_covered: List[str] = Field(description="List of key historical facts covered in the reply.")
    possible_confusion: str = Field(description="Areas where the student might still be confused.")

    @field_validator("reply")
    @classmethod
    def _reply_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("reply must not be blank")
        return value


def schema_text(model: Type[BaseModel]) -> str:
    """Compact JSON schema for embedding in a system instruction."""
    return json.dumps(model.model_json_schema(), ensure_ascii=False)


def _strip_fences(s: str) -> str:
    s = s.strip()
    if s.startswith("```"):
        # remove code fences and optional json hint
        lines = [ln for ln in s.splitlines() if not ln.strip().startswith("```")]
        return "\n".join(lines).strip()
    return s


def _parse_json(s: str) -> Any:
    s = _strip_fences(s)
    try:
        return json.loads(s)
    except ValueError:
        # try to extract first {...}
        start = s.find("{")
        end = s.rfind("}")
        if start != -1 and end != -1 and end > start:
            try:
                return json.loads(s[start : end + 1])
            except ValueError as e:
                raise ValueError(f"Failed to parse JSON after fence stripping: {e}") from e
        raise


def decode(model: Type[ModelT], raw: str | None) -> ModelT:
    """Parse a service payload into ``model``; all fields or nothing.

    Raises GenerationError for empty payloads, malformed JSON, non-object JSON,
    and payloads that do not validate against the model.
    """
    name = model.__name__
    if raw is None or not str(raw).strip():
        raise GenerationError(f"Empty payload for {name}")
    try:
        obj = _parse_json(str(raw))
    except (ValueError, RecursionError) as e:
        logger.error(f"decode_failed | model={name} reason=json | {type(e).__name__}")
        raise GenerationError(f"Malformed JSON for {name}") from e
    if not isinstance(obj, dict):
        logger.error(f"decode_failed | model={name} reason=not_object type={type(obj).__name__}")
        raise GenerationError(f"Expected a JSON object for {name}")
    try:
        return model.model_validate(obj)
    except ValidationError as e:
        logger.error(f"decode_failed | model={name} reason=schema errors={e.error_count()}")
        raise GenerationError(f"Payload does not match {name}: {e}") from e


def decode_profile(raw: str | None) -> PersonaProfile:
    return decode(PersonaProfile, raw)


def decode_orchestrator_response(raw: str | None) -> OrchestratorResponse:
    return decode(OrchestratorResponse, raw)


def to_dict(obj: BaseModel) -> Dict[str, Any]:
    return obj.model_dump(mode="json")
