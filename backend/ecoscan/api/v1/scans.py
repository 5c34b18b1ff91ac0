"""
Scans API Endpoints

- POST /scans: manual barcode entry, runs a scan session to completion
- WS /scans/session: interactive scan session (camera or manual)

WebSocket protocol (JSON messages):

    client -> server
        {"type": "start_camera", "camera_available": true}
        {"type": "start_camera", "source": "local"}     # camera on the server host
        {"type": "detected", "barcode": "..."}          # decoded on the client device
        {"type": "manual", "barcode": "..."}
        {"type": "cancel"}

    server -> client
        {"type": "state", "state": "<state>", ...}      # every transition
        {"type": "credited", "points_earned": ..., "eco_score": ..., ...}
        {"type": "navigate", "to": "/dashboard"}
        {"type": "failed", "code": "...", "detail": "..."}
        {"type": "error", "code": "...", "detail": "..."}   # rejected message

The server closes the socket once the session has finished (after the
navigate event on success). Closing the socket from the client tears the
session down: the detector is released and pending timers are cancelled.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from ecoscan.api.v1.deps import get_current_user_id, get_reward_ledger, get_session_factory, user_id_from_token
from ecoscan.core.exceptions import InvalidScanState, ProfileNotFound
from ecoscan.integrations.camera import CameraDetector
from ecoscan.integrations.detector import RemoteDetector
from ecoscan.schemas.scan import ManualScanRequest, ScanResultResponse
from ecoscan.services.reward_ledger import RewardLedger
from ecoscan.services.scan_session import ScanSession, ScanState

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/scans")


@router.post("", response_model=ScanResultResponse)
async def scan_barcode(
    data: ManualScanRequest,
    user_id: UUID = Depends(get_current_user_id),
    ledger: RewardLedger = Depends(get_reward_ledger),
    session_factory=Depends(get_session_factory),
):
    """
    Scan a manually entered barcode and credit the caller.

    Raises:
        404 product_not_found: barcode not in the catalog (nothing credited)
        409 ledger_conflict: concurrent credits kept colliding, retry
        500: the credit could not be written
    """
    # No confirmation screen to wait for over plain HTTP
    async with ScanSession(user_id, ledger, session_factory, settle_delay=0) as session:
        outcome = await session.scan_manual(data.barcode)

        if outcome.state is ScanState.FAILED:
            if isinstance(outcome.error, ProfileNotFound):
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                    detail="Could not credit this scan"
                )
            raise outcome.error

        return session.result()


async def _send_error(websocket: WebSocket, code: str, detail: str) -> None:
    await websocket.send_json({"type": "error", "code": code, "detail": detail})


async def _handle_message(
    websocket: WebSocket,
    session: ScanSession,
    remote: RemoteDetector,
    message: Dict[str, Any],
) -> None:
    kind = message.get("type")

    if kind == "start_camera":
        if message.get("source") == "local":
            # Swapped in by the session only if the scan has not started yet
            await session.start_camera(detector=CameraDetector())
        else:
            if session.state is ScanState.IDLE:
                remote.camera_available = bool(message.get("camera_available", True))
            await session.start_camera()

    elif kind == "detected":
        barcode = message.get("barcode")
        if not isinstance(barcode, str) or not barcode:
            await _send_error(websocket, "invalid_message", "detected requires a barcode")
            return
        if not remote.feed(barcode):
            logger.debug(f"[ScanSession] {session.user_id}: detection {barcode!r} not accepted")

    elif kind == "manual":
        barcode = message.get("barcode")
        if not isinstance(barcode, str) or not barcode.strip():
            await _send_error(websocket, "invalid_message", "manual requires a barcode")
            return
        await session.submit_manual(barcode)

    elif kind == "cancel":
        await session.cancel()

    else:
        await _send_error(websocket, "invalid_message", f"Unknown message type: {kind!r}")


async def _read_messages(websocket: WebSocket, session: ScanSession, remote: RemoteDetector) -> None:
    """Feed client messages into the session until the client goes away."""
    while True:
        try:
            raw = await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info(f"[ScanSession] {session.user_id}: client disconnected")
            return

        try:
            message = json.loads(raw)
        except ValueError:
            await _send_error(websocket, "invalid_message", "Messages must be JSON")
            continue
        if not isinstance(message, dict):
            await _send_error(websocket, "invalid_message", "Messages must be JSON objects")
            continue

        try:
            await _handle_message(websocket, session, remote, message)
        except InvalidScanState as exc:
            await _send_error(websocket, exc.code, exc.message)


async def _wait_finished(session: ScanSession) -> None:
    outcome = await session.wait()
    if outcome.state is ScanState.SETTLED:
        await session.wait_navigation()


@router.websocket("/session")
async def scan_session_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory=Depends(get_session_factory),
):
    """Interactive scan session. Authenticate with ?token=<JWT>."""
    user_id = user_id_from_token(token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    remote = RemoteDetector()

    async def send_event(event: Dict[str, Any]) -> None:
        await websocket.send_json(event)

    session = ScanSession(
        user_id,
        RewardLedger(session_factory),
        session_factory,
        detector=remote,
        on_event=send_event,
    )

    client_gone = False
    async with session:
        reader = asyncio.create_task(_read_messages(websocket, session, remote))
        finisher = asyncio.create_task(_wait_finished(session))
        done, pending = await asyncio.wait({reader, finisher}, return_when=asyncio.FIRST_COMPLETED)

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        client_gone = reader in done
        for task in done:
            # Re-raise unexpected errors from either side
            task.result()

    if not client_gone:
        await websocket.close()
