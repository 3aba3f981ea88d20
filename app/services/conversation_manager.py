"""Conversation state manager stored in memory."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class FlowKind(str, Enum):
    REGISTRATION = "registration"
    EVENT_RESERVATION = "event_reservation"
    BROADCAST = "broadcast"


class RegistrationStep(Enum):
    COLLECT_NAME = "collect_name"
    COLLECT_PHONE = "collect_phone"
    COLLECT_YEAR_OF_STUDY = "collect_year_of_study"
    COLLECT_DEPARTMENT = "collect_department"
    COMPLETE = "complete"


class ReservationStep(Enum):
    COLLECT_ATTENDANCE_INTENT = "collect_attendance_intent"
    COLLECT_FEEDBACK = "collect_feedback"
    COMPLETE = "complete"


class BroadcastStep(Enum):
    COLLECT_IMAGE_REFERENCE = "collect_image_reference"
    COLLECT_CAPTION = "collect_caption"
    AWAIT_CONFIRMATION = "await_confirmation"
    COMPLETE = "complete"
    CANCELLED = "cancelled"


Step = RegistrationStep | ReservationStep | BroadcastStep

STEP_TYPES: dict[FlowKind, type[Enum]] = {
    FlowKind.REGISTRATION: RegistrationStep,
    FlowKind.EVENT_RESERVATION: ReservationStep,
    FlowKind.BROADCAST: BroadcastStep,
}


@dataclass(slots=True)
class _ChatLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


@dataclass(slots=True)
class ConversationState:
    """In-memory representation of one in-progress flow."""

    chat_id: int
    flow_kind: FlowKind
    step: Step
    fields: dict[str, Any] = field(default_factory=dict)
    updated_at: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.step, STEP_TYPES[self.flow_kind]):
            raise ValueError(f"Step {self.step!r} does not belong to flow '{self.flow_kind.value}'.")

    def advance(self, step: Step, field_name: str, value: Any, now: float) -> None:
        """Store one collected value and move to the next step."""
        if not isinstance(step, STEP_TYPES[self.flow_kind]):
            raise ValueError(f"Step {step!r} does not belong to flow '{self.flow_kind.value}'.")
        self.fields[field_name] = value
        self.step = step
        self.updated_at = now


class ConversationManager:
    """Tracks at most one conversation per chat in RAM."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._conversations: dict[int, ConversationState] = {}
        self._locks: dict[int, _ChatLock] = {}

    @asynccontextmanager
    async def lock(self, chat_id: int) -> AsyncIterator[None]:
        """Hold the lock serializing all work for one chat.

        The lock is dropped once no task holds or waits for it, so idle chats
        leave nothing behind.
        """
        chat_lock = self._locks.get(chat_id)
        if chat_lock is None:
            chat_lock = _ChatLock()
            self._locks[chat_id] = chat_lock
        chat_lock.users += 1
        try:
            async with chat_lock.lock:
                yield
        finally:
            chat_lock.users -= 1
            if chat_lock.users == 0:
                self._locks.pop(chat_id, None)

    @property
    def lock_count(self) -> int:
        """Number of chats with a task holding or waiting for their lock."""
        return len(self._locks)

    def get(self, chat_id: int) -> ConversationState | None:
        """Return the live state for a chat, dropping it if it expired."""
        state = self._conversations.get(chat_id)
        if state is not None and self._is_expired(state):
            logger.info("Conversation for chat %s expired in step %s", chat_id, state.step.value)
            self._conversations.pop(chat_id, None)
            return None
        return state

    def start(
        self,
        chat_id: int,
        flow_kind: FlowKind,
        step: Step,
        fields: dict[str, Any] | None = None,
    ) -> ConversationState:
        """Create a new state for a chat, replacing any existing one."""
        previous = self._conversations.get(chat_id)
        if previous is not None:
            logger.info(
                "Replacing %s conversation for chat %s with %s",
                previous.flow_kind.value,
                chat_id,
                flow_kind.value,
            )
        state = ConversationState(
            chat_id=chat_id,
            flow_kind=flow_kind,
            step=step,
            fields=dict(fields or {}),
            updated_at=self.clock(),
        )
        self._conversations[chat_id] = state
        return state

    def discard(self, chat_id: int) -> ConversationState | None:
        """Clear chat state from memory."""
        return self._conversations.pop(chat_id, None)

    def evict_expired(self) -> int:
        """Drop every expired conversation and return how many were removed."""
        expired = [chat_id for chat_id, state in self._conversations.items() if self._is_expired(state)]
        for chat_id in expired:
            self._conversations.pop(chat_id, None)
        if expired:
            logger.info("Evicted %d stalled conversations", len(expired))
        return len(expired)

    def now(self) -> float:
        return self.clock()

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

    def _is_expired(self, state: ConversationState) -> bool:
        if self.ttl_seconds is None:
            return False
        return self.clock() - state.updated_at > self.ttl_seconds
