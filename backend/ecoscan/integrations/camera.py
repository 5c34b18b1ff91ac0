"""
Local Camera Detector

Decodes barcodes from a camera attached to the server host (kiosk mode)
with OpenCV frame capture and pyzbar decoding.

Camera dependencies are optional (``pip install ecoscan[camera]``) and are
imported on first activation, so API-only deployments never load OpenCV.
Each device index is exclusively owned by one activation at a time.
"""

import asyncio
import logging
import threading
import time
from typing import Optional, Set

from ecoscan.core.config import settings
from ecoscan.core.exceptions import DetectorUnavailable
from ecoscan.integrations.detector import Detector, DetectorHandle

logger = logging.getLogger(__name__)


class CameraHandle(DetectorHandle):
    """Activation of a local camera: the capture and its decode thread."""

    def __init__(self, device_index: int, capture, loop: asyncio.AbstractEventLoop):
        super().__init__(source=f"camera:{device_index}")
        self.device_index = device_index
        self.capture = capture
        self.loop = loop
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None


class CameraDetector(Detector):
    """
    Detector backed by cv2.VideoCapture + pyzbar.decode.

    Args:
        device_index: OpenCV camera index (default: settings.CAMERA_DEVICE_INDEX)
        fps: Frames decoded per second (default: settings.CAMERA_FPS)
    """

    _busy_devices: Set[int] = set()
    _busy_lock = threading.Lock()

    def __init__(self, device_index: Optional[int] = None, fps: Optional[int] = None):
        self.device_index = settings.CAMERA_DEVICE_INDEX if device_index is None else device_index
        self.fps = fps or settings.CAMERA_FPS

    async def activate(self) -> DetectorHandle:
        try:
            import cv2
            from pyzbar import pyzbar
        except ImportError as exc:
            raise DetectorUnavailable(
                "Camera support is not installed (opencv-python-headless, pyzbar)"
            ) from exc

        with self._busy_lock:
            if self.device_index in self._busy_devices:
                raise DetectorUnavailable(f"Camera {self.device_index} is already in use")
            self._busy_devices.add(self.device_index)

        try:
            capture = await asyncio.to_thread(cv2.VideoCapture, self.device_index)
            if not capture.isOpened():
                capture.release()
                raise DetectorUnavailable(f"Cannot open camera {self.device_index}")
        except DetectorUnavailable:
            self._free_device()
            raise
        except Exception as exc:
            self._free_device()
            raise DetectorUnavailable(f"Camera {self.device_index} failed to start: {exc}") from exc

        handle = CameraHandle(self.device_index, capture, asyncio.get_running_loop())
        handle.thread = threading.Thread(
            target=self._decode_loop,
            args=(handle, pyzbar),
            daemon=True,
            name=f"CameraDetector-{self.device_index}",
        )
        handle.thread.start()
        logger.info(f"[Detector] Camera {self.device_index} activated")
        return handle

    def _decode_loop(self, handle: CameraHandle, pyzbar) -> None:
        """Read frames until one decodes or the handle is released."""
        interval = 1.0 / max(self.fps, 1)
        try:
            while not handle.stop_event.is_set():
                ok, frame = handle.capture.read()
                if not ok:
                    time.sleep(interval)
                    continue

                for decoded in pyzbar.decode(frame):
                    data = decoded.data.decode("utf-8", errors="replace").strip()
                    if data:
                        logger.info(f"[Detector] Camera {handle.device_index} decoded {decoded.type} {data!r}")
                        handle.loop.call_soon_threadsafe(handle.emit, data)
                        handle.stop_event.set()
                        break

                time.sleep(interval)
        except Exception as exc:
            logger.error(f"[Detector] Camera {handle.device_index} decode loop failed: {exc}")
        finally:
            handle.capture.release()

    async def _release(self, handle: DetectorHandle) -> None:
        if not isinstance(handle, CameraHandle):
            # Not one of ours, it owns no device
            logger.warning(f"[Detector] Ignoring release of foreign handle {handle.source!r}")
            return
        handle.stop_event.set()
        if handle.thread is not None and handle.thread.is_alive():
            await asyncio.to_thread(handle.thread.join, 2.0)
        self._free_device(handle.device_index)
        logger.info(f"[Detector] Camera {handle.device_index} released")

    def _free_device(self, device_index: Optional[int] = None) -> None:
        with self._busy_lock:
            self._busy_devices.discard(self.device_index if device_index is None else device_index)
