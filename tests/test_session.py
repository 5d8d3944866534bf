"""Tests for the capture session state machine."""

import asyncio
from decimal import Decimal

import pytest

from meterscan.core.exceptions import (
    CaptureDeviceError,
    PermissionsNotGrantedError,
    RecognitionError,
    SessionBusyError,
)
from meterscan.core.states import (
    Capturing,
    Failed,
    FailureReason,
    Idle,
    Processing,
    Result,
    SessionStatus,
)
from meterscan.services.session import CaptureSessionController


@pytest.fixture
def controller(device, recognizer, history, gate) -> CaptureSessionController:
    return CaptureSessionController(
        device=device,
        recognizer=recognizer,
        history=history,
        consumer_id="c-1",
        permissions=gate,
        tariff_rate=Decimal("0.2"),
    )


@pytest.fixture
def transitions(controller) -> list[SessionStatus]:
    seen: list[SessionStatus] = []
    controller.add_listener(lambda state: seen.append(state.status))
    return seen


def test_starts_idle(controller):
    assert controller.state == Idle()


@pytest.mark.asyncio
async def test_full_cycle_produces_result(controller, recognizer, transitions):
    state = await controller.capture()

    assert isinstance(state, Result)
    assert state.image_ref == "file:///tmp/meter.jpg"
    assert state.recognized_text == "Reading: 01234 kWh"
    assert state.billing.previous_reading == 1000
    assert state.billing.current_reading == 1234
    assert state.billing.consumption == 234
    assert f"{state.billing.tariff:.2f}" == "46.80"
    assert recognizer.seen == ["file:///tmp/meter.jpg"]
    assert transitions == [
        SessionStatus.CAPTURING,
        SessionStatus.PROCESSING,
        SessionStatus.RESULT,
    ]


@pytest.mark.asyncio
async def test_text_without_digits_fails_and_keeps_text(
    controller, recognizer, history
):
    recognizer.text = "ERROR NO DIGITS"

    state = await controller.capture()

    assert isinstance(state, Failed)
    assert state.reason is FailureReason.EXTRACTION_NOT_FOUND
    assert state.recognized_text == "ERROR NO DIGITS"
    assert history.requested == []


@pytest.mark.asyncio
async def test_history_failure_fails_without_billing(controller, history):
    history.readings = {}

    state = await controller.capture()

    assert isinstance(state, Failed)
    assert state.reason is FailureReason.HISTORY_FETCH_ERROR
    assert state.recognized_text == "Reading: 01234 kWh"
    assert not hasattr(state, "billing")


@pytest.mark.asyncio
async def test_history_timeout_fails(device, recognizer, history):
    history.delay = 5
    controller = CaptureSessionController(
        device=device,
        recognizer=recognizer,
        history=history,
        consumer_id="c-1",
        history_timeout=0.01,
    )

    state = await controller.capture()

    assert isinstance(state, Failed)
    assert state.reason is FailureReason.HISTORY_FETCH_ERROR
    assert "timed out" in state.message


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [RecognitionError("engine crashed"), RuntimeError("unexpected")],
)
async def test_recognition_failure(controller, recognizer, error):
    recognizer.error = error

    state = await controller.capture()

    assert isinstance(state, Failed)
    assert state.reason is FailureReason.RECOGNITION_ERROR
    assert state.recognized_text is None


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "", "  \n "])
async def test_recognition_without_text_is_recognition_error(
    controller, recognizer, text
):
    recognizer.text = text

    state = await controller.capture()

    assert isinstance(state, Failed)
    assert state.reason is FailureReason.RECOGNITION_ERROR


@pytest.mark.asyncio
async def test_capture_device_error_returns_to_idle(controller, device, transitions):
    device.error = CaptureDeviceError("lens cap on")

    state = await controller.capture()

    assert isinstance(state, Idle)
    assert state.notice == "lens cap on"
    assert transitions == [SessionStatus.CAPTURING, SessionStatus.IDLE]


@pytest.mark.asyncio
async def test_capture_timeout_returns_to_idle(recognizer, history, device):
    device.release.clear()
    controller = CaptureSessionController(
        device=device,
        recognizer=recognizer,
        history=history,
        consumer_id="c-1",
        capture_timeout=0.01,
    )

    state = await controller.capture()

    assert isinstance(state, Idle)
    assert "timed out" in state.notice
    assert recognizer.seen == []


@pytest.mark.asyncio
async def test_capture_without_permissions_is_rejected(controller, gate, device):
    gate.granted = False

    with pytest.raises(PermissionsNotGrantedError):
        await controller.capture()

    assert controller.state == Idle()
    assert device.calls == 0


@pytest.mark.asyncio
async def test_capture_while_capturing_is_rejected(controller, device):
    device.release.clear()
    task = asyncio.create_task(controller.capture())
    await asyncio.sleep(0)
    assert controller.state == Capturing()

    with pytest.raises(SessionBusyError):
        await controller.capture()
    assert controller.state == Capturing()

    device.release.set()
    state = await task
    assert isinstance(state, Result)
    assert device.calls == 1


@pytest.mark.asyncio
async def test_reset_while_processing_is_rejected(controller):
    rejected = []

    def on_state(state):
        if isinstance(state, Processing):
            with pytest.raises(SessionBusyError):
                controller.reset()
            rejected.append(state)

    controller.add_listener(on_state)
    state = await controller.capture()

    assert len(rejected) == 1
    assert isinstance(state, Result)


@pytest.mark.asyncio
async def test_capture_from_result_is_rejected_until_reset(controller, device):
    result = await controller.capture()

    with pytest.raises(SessionBusyError):
        await controller.capture()
    assert controller.state is result
    assert device.calls == 1

    controller.reset()
    assert isinstance(await controller.capture(), Result)
    assert device.calls == 2


@pytest.mark.asyncio
async def test_capture_from_failed_is_rejected(controller, recognizer):
    recognizer.text = "no digits"
    failed = await controller.capture()

    with pytest.raises(SessionBusyError):
        await controller.capture()
    assert controller.state is failed


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["Reading: 01234 kWh", "nothing"])
async def test_reset_discards_everything(controller, recognizer, text):
    recognizer.text = text
    await controller.capture()

    assert controller.reset() == Idle()
    assert controller.reset() == Idle()
    assert controller.state == Idle()


@pytest.mark.asyncio
async def test_negative_consumption_is_a_result(controller, history):
    history.readings = {"c-1": 5000}

    state = await controller.capture()

    assert isinstance(state, Result)
    assert state.billing.consumption == -3766
    assert state.billing.tariff < 0
    assert state.billing.is_negative


@pytest.mark.asyncio
async def test_consumer_change(controller, history):
    controller.consumer_id = "c-2"
    history.readings["c-2"] = 1200

    state = await controller.capture()

    assert history.requested == ["c-2"]
    assert state.billing.consumption == 34

    with pytest.raises(SessionBusyError):
        controller.consumer_id = "c-3"
    assert controller.consumer_id == "c-2"


@pytest.mark.asyncio
async def test_cancelled_capture_returns_to_idle(controller, device):
    device.release.clear()
    task = asyncio.create_task(controller.capture())
    await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert controller.state == Idle(notice="Capture was cancelled.")
    device.release.set()
    assert isinstance(await controller.capture(), Result)


@pytest.mark.asyncio
async def test_cancelled_processing_fails_and_can_be_reset(controller, history):
    history.delay = 5
    task = asyncio.create_task(controller.capture())
    for _ in range(100):
        if isinstance(controller.state, Processing):
            break
        await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    state = controller.state
    assert isinstance(state, Failed)
    assert state.reason is FailureReason.CANCELLED
    assert controller.reset() == Idle()


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_the_session(controller, transitions):
    def broken(state):
        raise RuntimeError("observer crashed")

    controller.add_listener(broken)

    state = await controller.capture()

    assert isinstance(state, Result)
    assert transitions[-1] is SessionStatus.RESULT
    assert controller.reset() == Idle()


@pytest.mark.asyncio
async def test_explicit_zero_rate_is_kept(device, recognizer, history):
    controller = CaptureSessionController(
        device=device,
        recognizer=recognizer,
        history=history,
        consumer_id="c-1",
        tariff_rate=Decimal("0"),
    )

    state = await controller.capture()

    assert state.billing.consumption == 234
    assert state.billing.tariff == 0
