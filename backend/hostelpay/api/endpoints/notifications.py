"""
Admin notification endpoints and the live notification stream.
"""

import asyncio
from typing import List

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from hostelpay.core.exceptions import HostelError
from hostelpay.core.logging_config import logger
from hostelpay.modules.auth.dependencies import get_current_admin, get_services
from hostelpay.schemas.admin import Admin
from hostelpay.schemas.notification import Notification
from hostelpay.services.container import HostelServices

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=List[Notification])
async def list_notifications(
    unread: bool = False,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    """Notifications, newest first"""
    emitter = services.data.notifications
    return emitter.unread() if unread else emitter.list()


@router.get("/unread-count")
async def unread_count(
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    return {"count": services.data.notifications.unread_count()}


@router.post("/read-all")
async def mark_all_read(
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    count = await services.data.notifications.mark_all_as_read()
    return {"message": "All notifications marked as read", "updated": count}


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_read(
    notification_id: str,
    admin: Admin = Depends(get_current_admin),
    services: HostelServices = Depends(get_services),
):
    return await services.data.notifications.mark_as_read(notification_id)


async def close_relay(sender: asyncio.Task) -> None:
    """Stop a relay task and collect its result"""
    sender.cancel()
    try:
        await sender
    except asyncio.CancelledError:
        pass
    except Exception as e:
        # Sending after the client left
        logger.debug(f"[Notifications] Relay ended with: {e}")


@router.websocket("/stream")
async def notification_stream(websocket: WebSocket, token: str = Query(...)):
    """
    Live notifications for the admin dashboard.

    Connect with: ws://host/api/notifications/stream?token=<jwt_token>

    Message types sent:
    - connected: unread count at connect time
    - notification: every notification emitted after connecting
    - pong: reply to {"type": "ping"}
    """
    services: HostelServices = websocket.app.state.services
    try:
        admin = await services.auth.authenticate(token)
    except HostelError:
        await websocket.close(code=4001, reason="Invalid token")
        return

    await websocket.accept()
    emitter = services.data.notifications
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = emitter.subscribe(queue.put_nowait)

    async def relay():
        while True:
            notification = await queue.get()
            await websocket.send_json({
                "type": "notification",
                "data": notification.model_dump(mode="json", by_alias=True),
            })

    sender = asyncio.create_task(relay())
    logger.info(f"[Notifications] Stream opened for {admin.username}")
    try:
        await websocket.send_json({"type": "connected", "data": {"unreadCount": emitter.unread_count()}})
        while True:
            message = await websocket.receive_json()
            if message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        await close_relay(sender)
        logger.info(f"[Notifications] Stream closed for {admin.username}")
