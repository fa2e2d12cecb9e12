"""Stability controller for the live recognition loop.

A face that keeps being recognized as the same person does not need to be
sent to the backend every second. The controller pauses submission once the
same identity is recognized twice in a row and resumes as soon as a response
names someone else, names nobody, or fails.

States:
    idle    -> active   start()
    active  -> paused   same identity recognized again
    paused  -> active   different identity, no identity, error, or resume()
    any     -> idle     stop()
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.core.logging import get_logger
from app.domain.entities.face import BoundingBox

logger = get_logger(__name__)


class LiveState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    PAUSED = "paused"


class LivePerson(BaseModel):
    """Recognized person as returned by the live endpoint."""
    id: int
    name: str
    confidence: float
    box: Optional[BoundingBox] = None


class LiveResult(BaseModel):
    """Body of a live recognition response."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recognized: bool
    person: Optional[LivePerson] = None
    confidence: float = 0.0


class Overlay(BaseModel):
    """What the overlay shows for the last recognized person."""
    name: str
    confidence: float
    box: Optional[BoundingBox] = None

    @property
    def label(self) -> str:
        return f"{self.name} ({self.confidence * 100:.1f}%)"


class StabilityController:
    """Pure state machine; the session drives it with recognition responses."""

    def __init__(self) -> None:
        self.state = LiveState.IDLE
        self.last_recognized_id: Optional[int] = None
        self.overlay: Optional[Overlay] = None

    @property
    def paused(self) -> bool:
        return self.state is LiveState.PAUSED

    @property
    def active(self) -> bool:
        return self.state is LiveState.ACTIVE

    def start(self) -> None:
        if self.state is not LiveState.IDLE:
            return
        self.last_recognized_id = None
        self.overlay = None
        self._transition(LiveState.ACTIVE, "started")

    def stop(self) -> None:
        self.last_recognized_id = None
        self.overlay = None
        if self.state is not LiveState.IDLE:
            self._transition(LiveState.IDLE, "stopped")

    def resume(self) -> bool:
        """Resume capture after a pause. Returns False when not paused."""
        if not self.paused:
            return False
        # The next recognition of the same person only re-records it
        self.last_recognized_id = None
        self._transition(LiveState.ACTIVE, "resumed")
        return True

    def handle_result(self, result: Optional[LiveResult]) -> LiveState:
        """Apply one recognition response (None for errors) and return the new state."""
        if self.state is LiveState.IDLE:
            return self.state

        person = result.person if result is not None and result.recognized else None
        if person is None:
            self.last_recognized_id = None
            self.overlay = None
            if self.paused:
                self._transition(LiveState.ACTIVE, "face lost")
            return self.state

        self.overlay = Overlay(name=person.name, confidence=person.confidence, box=person.box)
        if person.id == self.last_recognized_id:
            if self.active:
                self._transition(LiveState.PAUSED, "same face recognized", face_id=person.id)
        else:
            self.last_recognized_id = person.id
            if self.paused:
                self._transition(LiveState.ACTIVE, "new face detected", face_id=person.id)
        return self.state

    def _transition(self, state: LiveState, reason: str, **context) -> None:
        logger.info("Live state changed", previous=self.state.value, state=state.value,
                    reason=reason, **context)
        self.state = state
