from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict


GRADE_OPTIONS = (
    "Elementary (Grade 1-5)",
    "Middle School (Grade 6-8)",
    "High School (Grade 9-12)",
    "University",
)

LANGUAGE_OPTIONS = (
    "English",
    "zh-CN",
    "zh-TW",
    "Spanish",
    "French",
)

LANGUAGE_LABELS = {
    "English": "English",
    "zh-CN": "Simplified Chinese (zh-CN)",
    "zh-TW": "Traditional Chinese (zh-TW)",
    "Spanish": "Spanish",
    "French": "French",
}


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConnectionStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class SessionPhase(Enum):
    IDLE = "idle"
    PROFILE_PENDING = "profile_pending"
    READY = "ready"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class SimulationSettings:
    """Who the student talks to, at which grade level, in which language."""

    target_person: str = "Qin Shi Huang"
    student_grade: str = "Middle School (Grade 6-8)"
    language: str = "English"

    def __post_init__(self):
        person = (self.target_person or "").strip()
        if not person:
            raise ValueError("target_person must not be empty")
        if self.student_grade not in GRADE_OPTIONS:
            raise ValueError(f"unsupported student_grade: {self.student_grade!r}")
        if self.language not in LANGUAGE_OPTIONS:
            raise ValueError(f"unsupported language: {self.language!r}")
        object.__setattr__(self, "target_person", person)
