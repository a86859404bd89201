"""
In-process hub that groups websocket connections by activity.

Each activity id names a group.  Connections join the group of the
activity they watch and every new comment is broadcast to the whole
group.  The registry lives in the event loop of a single worker;
running several workers requires an external pub/sub.
"""

import logging
from typing import Any, Dict, Set

from fastapi import WebSocket, WebSocketDisconnect


logger = logging.getLogger(__name__)


class CommentHub:
    """Registry of websocket groups keyed by activity id."""

    def __init__(self) -> None:
        self.groups: Dict[str, Set[WebSocket]] = {}

    def join(self, activity_id: str, websocket: WebSocket) -> None:
        self.groups.setdefault(activity_id, set()).add(websocket)
        logger.info("Connection joined comments of activity %s (%d connected)", activity_id, len(self.groups[activity_id]))

    def leave(self, activity_id: str, websocket: WebSocket) -> None:
        group = self.groups.get(activity_id)
        if group is None:
            return
        group.discard(websocket)
        if not group:
            del self.groups[activity_id]
        logger.info("Connection left comments of activity %s", activity_id)

    def connection_count(self, activity_id: str) -> int:
        return len(self.groups.get(activity_id, ()))

    async def broadcast(self, activity_id: str, message: Dict[str, Any]) -> None:
        """Send ``message`` to every connection in the group.

        Connections that fail to receive are dropped from the group.
        """
        for websocket in list(self.groups.get(activity_id, ())):
            try:
                await websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError, ConnectionError) as exc:
                logger.warning("Dropping comment connection for activity %s: %s", activity_id, exc)
                self.leave(activity_id, websocket)


comment_hub = CommentHub()
