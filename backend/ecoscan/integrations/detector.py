"""
Barcode Detector Capability

The scan session consumes barcode detection through this interface and
never implements decoding itself.

    handle = await detector.activate()        # or DetectorUnavailable
    detector.on_detected(handle, callback)    # callback(barcode), at most once
    await detector.deactivate(handle)         # always safe, even with None

A handle is the explicitly owned resource of one activation. It delivers
at most one successful detection; anything decoded after the first one,
or after release, is dropped.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ecoscan.core.exceptions import DetectorUnavailable

logger = logging.getLogger(__name__)

DetectionCallback = Callable[[str], None]


class DetectorHandle:
    """One activation of a detector."""

    def __init__(self, source: str):
        self.source = source
        self._callback: Optional[DetectionCallback] = None
        self._pending: Optional[str] = None
        self._delivered = False
        self.released = False

    def subscribe(self, callback: DetectionCallback) -> None:
        self._callback = callback
        if self._pending is not None:
            barcode, self._pending = self._pending, None
            self._deliver(barcode)

    def emit(self, barcode: str) -> bool:
        """
        Report a decoded barcode. Returns True if it was accepted.

        A barcode decoded before anyone subscribed is held until subscribe().
        """
        if self.released or self._delivered:
            return False
        if self._callback is None:
            if self._pending is None:
                self._pending = barcode
                return True
            return False
        self._deliver(barcode)
        return True

    def _deliver(self, barcode: str) -> None:
        self._delivered = True
        self._callback(barcode)

    def release(self) -> None:
        self.released = True
        self._callback = None
        self._pending = None


class Detector(ABC):
    """Capability interface for optical barcode detection."""

    @abstractmethod
    async def activate(self) -> DetectorHandle:
        """Acquire the device. Raises DetectorUnavailable."""

    def on_detected(self, handle: DetectorHandle, callback: DetectionCallback) -> None:
        handle.subscribe(callback)

    async def deactivate(self, handle: Optional[DetectorHandle]) -> None:
        """Release the device. No-op for None or an already released handle."""
        if handle is None or handle.released:
            return
        handle.release()
        await self._release(handle)

    async def _release(self, handle: DetectorHandle) -> None:
        """Hook for adapters holding a real device."""


class RemoteDetector(Detector):
    """
    Detection performed on the client device.

    The browser or app decodes frames itself and sends each barcode over
    the scan WebSocket; feed() routes it to the active handle. When the
    client reports it has no camera, activation fails with
    DetectorUnavailable and the session falls back to a demo product.
    """

    def __init__(self, camera_available: bool = True):
        self.camera_available = camera_available
        self._handle: Optional[DetectorHandle] = None
        self._lock = asyncio.Lock()

    async def activate(self) -> DetectorHandle:
        async with self._lock:
            if not self.camera_available:
                raise DetectorUnavailable("Camera API not available on this device")
            if self._handle is not None and not self._handle.released:
                raise DetectorUnavailable("Camera is already in use by another scan")
            self._handle = DetectorHandle(source="remote")
            logger.debug("[Detector] Remote camera activated")
            return self._handle

    def feed(self, barcode: str) -> bool:
        """Deliver a client-side detection. False when nothing is listening."""
        handle = self._handle
        if handle is None or handle.released:
            logger.debug(f"[Detector] Dropping barcode {barcode!r}: no active camera")
            return False
        return handle.emit(barcode)

    async def _release(self, handle: DetectorHandle) -> None:
        if self._handle is handle:
            self._handle = None
        logger.debug("[Detector] Remote camera released")
