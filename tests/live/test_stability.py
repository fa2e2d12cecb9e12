"""Tests for the live stability state machine."""
from typing import Optional

import pytest

from app.live.stability import LiveResult, LiveState, StabilityController


def recognized(face_id: int, name: str = "Someone", confidence: float = 0.9) -> LiveResult:
    return LiveResult.model_validate({
        "recognized": True,
        "confidence": confidence,
        "person": {
            "id": face_id,
            "name": name,
            "confidence": confidence,
            "similarity": confidence,
            "box": {"x": 10, "y": 20, "width": 100, "height": 120},
        },
    })


def unrecognized(confidence: float = 0.2) -> LiveResult:
    return LiveResult(recognized=False, confidence=confidence)


@pytest.fixture
def controller() -> StabilityController:
    controller = StabilityController()
    controller.start()
    return controller


def test_starts_idle():
    controller = StabilityController()
    assert controller.state is LiveState.IDLE
    assert controller.handle_result(recognized(1)) is LiveState.IDLE


def test_first_recognition_only_records(controller):
    assert controller.handle_result(recognized(42)) is LiveState.ACTIVE
    assert controller.last_recognized_id == 42


def test_same_identity_twice_pauses(controller):
    controller.handle_result(recognized(42))
    assert controller.handle_result(recognized(42)) is LiveState.PAUSED


def test_different_identity_resumes_within_one_response(controller):
    controller.handle_result(recognized(42))
    controller.handle_result(recognized(42))

    assert controller.handle_result(recognized(7)) is LiveState.ACTIVE
    assert controller.last_recognized_id == 7


@pytest.mark.parametrize("result", [None, unrecognized()])
def test_lost_face_or_error_resumes(controller, result: Optional[LiveResult]):
    controller.handle_result(recognized(42))
    controller.handle_result(recognized(42))

    assert controller.handle_result(result) is LiveState.ACTIVE
    assert controller.last_recognized_id is None
    assert controller.overlay is None


def test_alternating_identities_never_pause(controller):
    for face_id in (1, 2, 1, 2, 1):
        assert controller.handle_result(recognized(face_id)) is LiveState.ACTIVE


def test_overlay_keeps_last_recognized_person(controller):
    controller.handle_result(recognized(42, name="Alice", confidence=0.876))
    controller.handle_result(recognized(42, name="Alice", confidence=0.876))

    assert controller.paused
    assert controller.overlay.name == "Alice"
    assert controller.overlay.label == "Alice (87.6%)"
    assert controller.overlay.box.width == 100


def test_explicit_resume(controller):
    controller.handle_result(recognized(42))
    controller.handle_result(recognized(42))

    assert controller.resume()
    assert controller.state is LiveState.ACTIVE
    # Needs two recognitions again before pausing
    assert controller.handle_result(recognized(42)) is LiveState.ACTIVE
    assert controller.handle_result(recognized(42)) is LiveState.PAUSED


def test_resume_when_not_paused_is_noop(controller):
    assert controller.resume() is False
    assert controller.state is LiveState.ACTIVE


def test_stop_clears_everything(controller):
    controller.handle_result(recognized(42))
    controller.handle_result(recognized(42))

    controller.stop()

    assert controller.state is LiveState.IDLE
    assert controller.last_recognized_id is None
    assert controller.overlay is None
