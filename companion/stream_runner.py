from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, Generator, Optional, TypeVar

import httpx
from loguru import logger

from .client import GenerationClient
from .manager import SessionController
from .schemas import PersonaProfile, to_dict
from .states import ConnectionStatus, Role, SimulationSettings


T = TypeVar("T")


class SessionRunner:
    """Synchronous bridge between Streamlit reruns and one SessionController.

    All coroutines of a session run on the same event loop, so async HTTP
    connections opened by one turn are still usable by the next.
    """

    def __init__(
        self,
        controller: SessionController,
        http_async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.controller = controller
        self.http_async_client = http_async_client
        self.loop = asyncio.new_event_loop()

    @classmethod
    def create(cls) -> "SessionRunner":
        """Runner with its own connection pool. Raises ConfigurationError without a key."""
        http_async_client = httpx.AsyncClient()
        try:
            client = GenerationClient(http_async_client=http_async_client)
        except Exception:
            asyncio.run(http_async_client.aclose())
            raise
        return cls(SessionController(client), http_async_client=http_async_client)

    @property
    def store(self):
        return self.controller.store

    @property
    def closed(self) -> bool:
        return self.loop.is_closed()

    def run(self, coro: Awaitable[T]) -> T:
        return self.loop.run_until_complete(coro)

    def start_session(self, settings: SimulationSettings) -> PersonaProfile:
        """Blocking variant of SessionController.start_session."""
        return self.run(self.controller.start_session(settings))

    def send_message_stream(self, text: str) -> Generator[Dict[str, Any], None, None]:
        """Synchronous turn runner for UI. Yields events for the messages the turn appended.

        Yields dicts of shape:
          - {type: 'user', data: {id, role, content, timestamp}}
          - {type: 'turn', data: {message: {...}, analysis: {...}}}
          - {type: 'error', data: {message: {...}}}

        Nothing is yielded when the message was rejected (blank input or a turn in flight).
        """
        store = self.controller.store
        before = len(store.messages)
        self.run(self.controller.send_message(text))
        appended = store.messages[before:]
        if not appended:
            logger.debug("ui_turn_skipped | message not accepted")
            return

        for msg in appended:
            if msg.role == Role.USER:
                yield {"type": "user", "data": msg.to_dict()}
            elif store.status == ConnectionStatus.ERROR:
                yield {"type": "error", "data": {"message": msg.to_dict()}}
            else:
                analysis = store.latest_analysis
                yield {
                    "type": "turn",
                    "data": {"message": msg.to_dict(), "analysis": to_dict(analysis) if analysis else None},
                }

    def close(self) -> None:
        if self.closed:
            return
        if self.http_async_client is not None:
            self.run(self.http_async_client.aclose())
        self.loop.run_until_complete(self.loop.shutdown_asyncgens())
        self.loop.close()
        logger.debug("session_runner_closed")
