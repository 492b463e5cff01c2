from __future__ import annotations

import time
from typing import Optional

from loguru import logger

from .client import GenerationClient
from .errors import GenerationError
from .schemas import Gender, OrchestratorResponse, PersonaProfile, Region
from .states import ConnectionStatus, SessionPhase, SimulationSettings
from .store import ConversationStore


def fallback_profile(settings: SimulationSettings) -> PersonaProfile:
    """Profile used when generation fails; depends only on the target person."""
    return PersonaProfile(
        name=settings.target_person,
        title="Historical Figure",
        era="Unknown Era",
        bio_quote="I am ready to answer your questions.",
        key_achievements=["History", "Leadership", "Legacy"],
        region=Region.WESTERN,
        gender=Gender.MALE,
    )


class SessionController:
    """Binds user actions (start, send, reset) to generation calls and store transitions.

    Profile failures degrade to ``fallback_profile`` so a session always becomes
    usable. Turn failures surface as a fixed assistant message and ERROR status;
    the student re-sends to retry.
    """

    def __init__(self, client: GenerationClient, store: Optional[ConversationStore] = None) -> None:
        self.client = client
        self.store = store if store is not None else ConversationStore()
        self._turn_in_flight = False

    @property
    def turn_in_flight(self) -> bool:
        return self._turn_in_flight

    async def start_session(self, settings: SimulationSettings) -> PersonaProfile:
        self.store.start_session(settings)
        logger.info(
            f"session_start | person={settings.target_person} grade={settings.student_grade} "
            f"language={settings.language}"
        )
        try:
            profile = await self.client.generate_persona_profile(settings.target_person, settings.language)
        except GenerationError as e:
            logger.warning(f"profile_fallback | person={settings.target_person} | {e}")
            return self._use_fallback(settings)
        except Exception:
            logger.exception(f"profile_fallback | person={settings.target_person} | unexpected client error")
            return self._use_fallback(settings)
        self.store.profile_ready(profile)
        logger.info(
            f"profile_ready | name={profile.name} region={profile.region.value} gender={profile.gender.value}"
        )
        return profile

    async def send_message(self, text: str) -> Optional[OrchestratorResponse]:
        content = (text or "").strip()
        if not content:
            return None
        if self._turn_in_flight or self.store.status == ConnectionStatus.LOADING:
            logger.debug("send_rejected | turn already in flight")
            return None
        settings = self.store.settings
        if settings is None or self.store.phase != SessionPhase.READY:
            logger.debug(f"send_rejected | phase={self.store.phase.value}")
            return None

        self._turn_in_flight = True
        try:
            # History is captured before the new question is appended.
            history = self.store.messages
            self.store.append_user_message(content)
            self.store.begin_turn()
            logger.info(f"turn_start | history={len(history)}")
            t0 = time.perf_counter()
            try:
                response = await self.client.send_turn(content, history, settings)
            except GenerationError as e:
                logger.error(f"turn_failed | {e}")
                self.store.turn_failed()
                return None
            except Exception:
                logger.exception("turn_failed | unexpected client error")
                self.store.turn_failed()
                return None
            self.store.turn_succeeded(response)
            logger.info(
                f"turn_done | dt={time.perf_counter() - t0:.2f}s emotion={response.emotion_tag} "
                f"facts={len(response.knowledge_covered)}"
            )
            return response
        finally:
            self._turn_in_flight = False

    def _use_fallback(self, settings: SimulationSettings) -> PersonaProfile:
        profile = fallback_profile(settings)
        self.store.profile_failed(profile)
        return profile

    def reset(self) -> None:
        self.store.reset()
        logger.info("session_reset | awaiting new settings")
