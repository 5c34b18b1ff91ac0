"""
External Capability Integrations

This package contains adapters for capabilities the scan pipeline consumes:
- Barcode detection decoded on the client device (RemoteDetector)
- Barcode detection from a local camera via OpenCV + pyzbar (CameraDetector)
"""

from ecoscan.integrations.detector import Detector, DetectorHandle, RemoteDetector
from ecoscan.integrations.camera import CameraDetector

__all__ = [
    "Detector",
    "DetectorHandle",
    "RemoteDetector",
    "CameraDetector",
]
