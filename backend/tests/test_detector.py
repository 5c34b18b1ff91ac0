import sys

import pytest

from conftest import run
from ecoscan.core.exceptions import DetectorUnavailable
from ecoscan.integrations.camera import CameraDetector
from ecoscan.integrations.detector import DetectorHandle, RemoteDetector


def test_handle_delivers_at_most_one_detection():
    received = []
    handle = DetectorHandle(source="test")
    handle.subscribe(received.append)

    assert handle.emit("111")
    assert not handle.emit("222")
    assert received == ["111"]


def test_handle_holds_detection_until_subscribed():
    received = []
    handle = DetectorHandle(source="test")

    assert handle.emit("111")
    assert not handle.emit("222")
    handle.subscribe(received.append)

    assert received == ["111"]


def test_released_handle_drops_detections():
    received = []
    handle = DetectorHandle(source="test")
    handle.subscribe(received.append)
    handle.release()

    assert not handle.emit("111")
    assert received == []


def test_remote_detector_without_camera_is_unavailable():
    detector = RemoteDetector(camera_available=False)

    with pytest.raises(DetectorUnavailable):
        run(detector.activate())


def test_remote_detector_is_exclusive_until_released():
    detector = RemoteDetector()

    async def scenario():
        handle = await detector.activate()
        with pytest.raises(DetectorUnavailable):
            await detector.activate()
        await detector.deactivate(handle)
        second = await detector.activate()
        await detector.deactivate(second)
        return handle, second

    first, second = run(scenario())
    assert first is not second
    assert first.released and second.released


def test_remote_detector_feeds_active_handle():
    detector = RemoteDetector()
    received = []

    async def scenario():
        assert not detector.feed("111")
        handle = await detector.activate()
        detector.on_detected(handle, received.append)
        assert detector.feed("222")
        assert not detector.feed("333")
        await detector.deactivate(handle)
        assert not detector.feed("444")

    run(scenario())
    assert received == ["222"]


def test_deactivate_is_always_safe():
    detector = RemoteDetector()

    async def scenario():
        await detector.deactivate(None)
        handle = await detector.activate()
        await detector.deactivate(handle)
        await detector.deactivate(handle)

    run(scenario())


def test_camera_detector_without_opencv_is_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "cv2", None)

    with pytest.raises(DetectorUnavailable):
        run(CameraDetector(device_index=0).activate())

    # A failed activation leaves the device free
    assert 0 not in CameraDetector._busy_devices


def test_camera_detector_never_frees_a_device_for_a_foreign_handle(monkeypatch):
    monkeypatch.setattr(CameraDetector, "_busy_devices", {0})
    foreign = DetectorHandle(source="remote")

    run(CameraDetector(device_index=0).deactivate(foreign))

    assert foreign.released
    assert CameraDetector._busy_devices == {0}
