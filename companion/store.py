from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from loguru import logger

from .schemas import OrchestratorResponse, PersonaProfile
from .states import ConnectionStatus, Message, Role, SessionPhase, SimulationSettings


GREETING_TEMPLATE = (
    "Greetings. I am {name}. I sense you come from a distant time. Speak, what brings you to my era?"
)
UNREACHABLE_MESSAGE = "The annals of history are currently unreachable. Please try again."


@dataclass(frozen=True)
class SessionSnapshot:
    messages: Tuple[Message, ...]
    settings: Optional[SimulationSettings]
    profile: Optional[PersonaProfile]
    status: ConnectionStatus
    latest_analysis: Optional[OrchestratorResponse]
    phase: SessionPhase
    awaiting_settings: bool


Listener = Callable[[SessionSnapshot], None]


class ConversationStore:
    """Session state for one student and the transitions that change it.

    Every transition runs to completion before listeners are notified, so an
    observer only ever sees consistent snapshots.
    """

    def __init__(self) -> None:
        self._messages: List[Message] = []
        self._settings: Optional[SimulationSettings] = None
        self._profile: Optional[PersonaProfile] = None
        self._status = ConnectionStatus.IDLE
        self._latest_analysis: Optional[OrchestratorResponse] = None
        self._phase = SessionPhase.IDLE
        self._awaiting_settings = True
        self._listeners: List[Listener] = []

    # -- read access -------------------------------------------------------

    @property
    def messages(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def settings(self) -> Optional[SimulationSettings]:
        return self._settings

    @property
    def profile(self) -> Optional[PersonaProfile]:
        return self._profile

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def latest_analysis(self) -> Optional[OrchestratorResponse]:
        return self._latest_analysis

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def awaiting_settings(self) -> bool:
        return self._awaiting_settings

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            messages=self.messages,
            settings=self._settings,
            profile=self._profile,
            status=self._status,
            latest_analysis=self._latest_analysis,
            phase=self._phase,
            awaiting_settings=self._awaiting_settings,
        )

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self, event: str) -> None:
        logger.debug(
            f"store_{event} | phase={self._phase.value} status={self._status.value} "
            f"messages={len(self._messages)}"
        )
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    # -- transitions -------------------------------------------------------

    def start_session(self, settings: SimulationSettings) -> None:
        self._settings = settings
        self._messages = []
        self._latest_analysis = None
        self._profile = None
        self._status = ConnectionStatus.IDLE
        self._phase = SessionPhase.PROFILE_PENDING
        self._awaiting_settings = False
        self._notify("start_session")

    def profile_ready(self, profile: PersonaProfile) -> Message:
        self._profile = profile
        self._phase = SessionPhase.READY
        greeting = Message(role=Role.ASSISTANT, content=GREETING_TEMPLATE.format(name=profile.name))
        self._messages.append(greeting)
        self._notify("profile_ready")
        return greeting

    def profile_failed(self, fallback_profile: PersonaProfile) -> None:
        self._profile = fallback_profile
        self._phase = SessionPhase.READY
        self._notify("profile_failed")

    def append_user_message(self, content: str) -> Optional[Message]:
        text = (content or "").strip()
        if not text or self._status == ConnectionStatus.LOADING:
            return None
        msg = Message(role=Role.USER, content=text)
        self._messages.append(msg)
        self._notify("append_user_message")
        return msg

    def begin_turn(self) -> None:
        if self._status == ConnectionStatus.LOADING:
            raise RuntimeError("a turn is already in flight")
        self._status = ConnectionStatus.LOADING
        self._notify("begin_turn")

    def turn_succeeded(self, response: OrchestratorResponse) -> Message:
        reply = Message(role=Role.ASSISTANT, content=response.reply)
        self._messages.append(reply)
        self._latest_analysis = response
        self._status = ConnectionStatus.SUCCESS
        self._notify("turn_succeeded")
        return reply

    def turn_failed(self) -> Message:
        msg = Message(role=Role.ASSISTANT, content=UNREACHABLE_MESSAGE)
        self._messages.append(msg)
        self._status = ConnectionStatus.ERROR
        self._notify("turn_failed")
        return msg

    def reset(self) -> None:
        # Data is discarded by the next start_session, not here.
        self._awaiting_settings = True
        self._notify("reset")
