"""
Real-time comments over WebSocket.

Clients connect to ``/comments?activityId=<id>&access_token=<token>``
and join the group of that activity.  The server then sends::

    {"type": "LoadComments", "data": [CommentDto, ...]}

with the existing comments, newest first.  A client posts a comment
by sending ``{"body": "..."}`` (optionally with ``"type":
"SendComment"``); the saved comment is broadcast to the whole group
as::

    {"type": "ReceiveComment", "data": CommentDto}

Invalid messages are answered with ``{"type": "Error", "errors":
{...}}`` to the sender only.  Connections without an activity id,
with an invalid token or for an unknown activity are closed with a
policy violation (1008).
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from reactivities_api.app.core.exceptions import NotFoundError, format_validation_errors
from reactivities_api.app.core.security import load_user_for_token
from reactivities_api.app.schemas.comment import CommentCreate
from reactivities_api.app.services.comment_hub import comment_hub
from reactivities_api.app.services.comment_service import CommentService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["comments"])

SEND_COMMENT = "SendComment"


async def _reject(websocket: WebSocket, reason: str) -> None:
    await websocket.accept()
    await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=reason)


@router.websocket("/comments")
async def comments_socket(
    websocket: WebSocket,
    activity_id: Optional[str] = Query(None, alias="activityId"),
    access_token: Optional[str] = Query(None),
) -> None:
    if not activity_id:
        await _reject(websocket, "No activity with this id")
        return
    user = load_user_for_token(access_token) if access_token else None
    if user is None:
        await _reject(websocket, "Invalid or missing access token")
        return
    try:
        comments = await CommentService.list_comments(activity_id)
    except NotFoundError:
        await _reject(websocket, "No activity with this id")
        return

    await websocket.accept()
    comment_hub.join(activity_id, websocket)
    try:
        await websocket.send_json(
            {"type": "LoadComments", "data": [c.model_dump(mode="json", by_alias=True) for c in comments]}
        )
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", status.WS_1000_NORMAL_CLOSURE))
            try:
                message = json.loads(frame.get("text") or "")
            except ValueError:
                await websocket.send_json({"type": "Error", "errors": {"request": ["Message must be JSON"]}})
                continue
            if not isinstance(message, dict) or message.get("type", SEND_COMMENT) != SEND_COMMENT:
                await websocket.send_json({"type": "Error", "errors": {"type": ["Unsupported message"]}})
                continue
            try:
                payload = CommentCreate.model_validate({"body": message.get("body", "")})
            except ValidationError as exc:
                await websocket.send_json({"type": "Error", "errors": format_validation_errors(exc.errors())})
                continue
            try:
                comment = await CommentService.add_comment(activity_id, user["user_id"], payload)
            except NotFoundError as exc:
                await websocket.send_json({"type": "Error", "errors": {"activityId": [exc.message]}})
                continue
            await comment_hub.broadcast(
                activity_id, {"type": "ReceiveComment", "data": comment.model_dump(mode="json", by_alias=True)}
            )
    except WebSocketDisconnect:
        logger.info("User %s disconnected from comments of activity %s", user["user_id"], activity_id)
    finally:
        comment_hub.leave(activity_id, websocket)
