"""WebSocket endpoint streaming row changes to the authenticated user."""
from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from ..database import SessionLocal
from ..services import change_feed_manager, parse_table_filter, resolve_token_user

router = APIRouter(prefix="/realtime", tags=["realtime"])
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def change_feed_socket(
    websocket: WebSocket,
    token: str = Query(..., alias="token"),
    tables: Optional[str] = Query(None),
) -> None:
    """Push ``{"table", "event", "record"}`` events until the client disconnects."""

    with SessionLocal() as db:
        profile = resolve_token_user(db, token)
    if profile is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    user_id = profile.id

    try:
        table_filter = parse_table_filter(tables)
    except ValueError as exc:
        logger.info("Rejected change feed subscription for %s: %s", user_id, exc)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=str(exc))
        return
    await change_feed_manager.connect(str(user_id), websocket, table_filter)
    logger.info("Change feed connected for %s", user_id)
    await websocket.send_text(
        json.dumps({"type": "ready", "tables": sorted(table_filter) if table_filter else None})
    )
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break

            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                payload = {"type": raw}
            if not isinstance(payload, dict):
                continue

            if str(payload.get("type") or "").strip().lower() == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    finally:
        await change_feed_manager.disconnect(websocket)
        logger.info("Change feed disconnected for %s", user_id)


__all__ = ["router"]
