"""
Real-time notification socket.

Clients connect to ``/ws/notifications?token=<JWT>``. While connected they
are present on the process-wide NotificationChannel and receive JSON
events pushed by the session and connection services.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, WebSocketException, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from app.database import get_db
from app.services.notification_service import NotificationChannel
from app.utils.security import get_user_from_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])


def get_notification_channel(conn: HTTPConnection) -> NotificationChannel:
    return conn.app.state.notification_channel


class WebSocketHandle:
    """
    Connection handle backed by a WebSocket.

    ``deliver`` may be called from any thread (sync routes run in the
    threadpool); messages are queued onto the socket's event loop and sent
    in order by a single writer. Once a send fails the handle leaves the
    channel and drops anything delivered afterwards.
    """

    def __init__(self, websocket: WebSocket, user_id: int, channel: NotificationChannel):
        self.websocket = websocket
        self.user_id = user_id
        self.channel = channel
        self.closed = False
        self._loop = asyncio.get_running_loop()
        self._queue: "asyncio.Queue[Optional[dict]]" = asyncio.Queue()

    def deliver(self, message: dict) -> None:
        if self.closed:
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, message)

    def close(self) -> None:
        self._loop.call_soon_threadsafe(self._queue.put_nowait, None)

    async def pump(self) -> None:
        while True:
            message = await self._queue.get()
            if message is None:
                return
            try:
                await self.websocket.send_json(message)
            except Exception as exc:
                logger.warning("WebSocket send failed (user_id=%s): %s", self.user_id, exc)
                self.closed = True
                self.channel.disconnect(self.user_id, self)
                return


def _authenticate(db: Session, token: Optional[str]) -> Optional[int]:
    """Resolve the token to a user id and hand the db connection back to the pool."""
    try:
        user = get_user_from_token(db, token)
        return user.id if user is not None else None
    finally:
        db.close()


@router.websocket("/ws/notifications")
async def notifications_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    # The socket may stay open for hours; it must not pin a pooled connection.
    user_id = await run_in_threadpool(_authenticate, db, token)
    if user_id is None:
        logger.warning("WebSocket rejected: invalid or missing token (client=%s)", websocket.client)
        raise WebSocketException(code=status.WS_1008_POLICY_VIOLATION, reason="Could not validate credentials")

    await websocket.accept()
    channel = get_notification_channel(websocket)
    handle = WebSocketHandle(websocket, user_id, channel)
    writer = asyncio.create_task(handle.pump())
    channel.connect(user_id, handle)

    try:
        # Client messages are ignored; receiving only detects disconnects.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("WebSocket closed by client (user_id=%s)", user_id)
    finally:
        channel.disconnect(user_id, handle)
        handle.close()
        await asyncio.gather(writer, return_exceptions=True)
