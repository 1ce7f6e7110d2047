"""WebSocket fanout of row-level changes to the users they concern."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Iterable, Literal
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)

ChangeEvent = Literal["INSERT", "UPDATE"]

WATCHED_TABLES: frozenset[str] = frozenset({"notifications", "messages"})


def parse_table_filter(raw: str | None) -> frozenset[str] | None:
    """Turn ``"notifications,messages"`` into a filter set; empty means every table.

    Raises ``ValueError`` for names outside :data:`WATCHED_TABLES`.
    """

    if not raw:
        return None
    tables = frozenset(part.strip().lower() for part in raw.split(",") if part.strip())
    unknown = tables - WATCHED_TABLES
    if unknown:
        raise ValueError(f"Unsupported change feed tables: {', '.join(sorted(unknown))}")
    return tables or None


class ChangeFeedManager:
    """Tracks per-user WebSocket subscriptions and pushes change events to them."""

    def __init__(self) -> None:
        self._channels: dict[str, set[WebSocket]] = {}
        self._subscriptions: dict[WebSocket, tuple[str, frozenset[str] | None]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, user_id: str, websocket: WebSocket, tables: frozenset[str] | None = None) -> None:
        await websocket.accept()
        async with self._lock:
            self._channels.setdefault(user_id, set()).add(websocket)
            self._subscriptions[websocket] = (user_id, tables)

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            subscription = self._subscriptions.pop(websocket, None)
            if subscription is None:
                return
            user_id = subscription[0]
            group = self._channels.get(user_id)
            if group is None:
                return
            group.discard(websocket)
            if not group:
                self._channels.pop(user_id, None)

    def connection_count(self, user_id: str | None = None) -> int:
        if user_id is None:
            return len(self._subscriptions)
        return len(self._channels.get(user_id, ()))

    async def publish(
        self,
        users: str | Iterable[str],
        *,
        table: str,
        event: ChangeEvent,
        record: dict[str, Any],
    ) -> int:
        """Send one change event to every matching subscription of ``users``.

        Returns the number of sockets the event was delivered to.
        """

        target_ids = {users} if isinstance(users, str) else {user for user in users if user}
        if not target_ids:
            return 0

        serialized = json.dumps({"table": table, "event": event, "record": record}, default=str)
        async with self._lock:
            targets = [
                ws
                for user_id in target_ids
                for ws in self._channels.get(user_id, ())
                if self._wants(ws, table)
            ]

        delivered = 0
        for ws in targets:
            try:
                await ws.send_text(serialized)
            except Exception:  # noqa: BLE001 - any send failure means the socket is gone
                logger.debug("Dropping dead change feed socket", exc_info=True)
                await self.disconnect(ws)
            else:
                delivered += 1
        return delivered

    def _wants(self, websocket: WebSocket, table: str) -> bool:
        subscription = self._subscriptions.get(websocket)
        if subscription is None:
            return False
        tables = subscription[1]
        return tables is None or table in tables


change_feed_manager = ChangeFeedManager()

_pending: set[asyncio.Task[int]] = set()


def schedule_change(
    users: UUID | str | Iterable[UUID | str],
    *,
    table: str,
    event: ChangeEvent,
    record: dict[str, Any],
) -> None:
    """Queue a change event from synchronous service code; a no-op outside an event loop."""

    if isinstance(users, (UUID, str)):
        targets = [str(users)]
    else:
        targets = [str(user) for user in users if user]
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    task = loop.create_task(change_feed_manager.publish(targets, table=table, event=event, record=record))
    _pending.add(task)
    task.add_done_callback(_pending.discard)


__all__ = [
    "ChangeEvent",
    "ChangeFeedManager",
    "WATCHED_TABLES",
    "change_feed_manager",
    "parse_table_filter",
    "schedule_change",
]
