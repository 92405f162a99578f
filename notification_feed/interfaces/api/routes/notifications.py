"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status

from notification_feed.application.use_cases.notifications import (
    InitialFetchError,
    NotificationSession,
    NotificationStore,
    build_delivery_filter,
    create_notification,
    delete_all_notifications,
    delete_notification,
    mark_all_notifications_read,
    mark_notifications_read,
)
from notification_feed.config import Settings
from notification_feed.domain.entities import NotificationRecord
from notification_feed.infrastructure.notifications import (
    SqlCursorStore,
    SqlNotificationFeed,
    serialize_notification,
    serialize_state,
)
from notification_feed.infrastructure.repositories import NotificationNotFoundError
from notification_feed.infrastructure.security import resolve_user_id
from notification_feed.interfaces.api.dependencies import (
    get_app_settings,
    get_current_user_id,
    get_cursor_store,
    get_notification_feed,
)
from notification_feed.interfaces.api.schemas import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationDeleteAllResponse,
    NotificationListResponse,
    NotificationMarkReadRequest,
    NotificationRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


def _notification_to_schema(notification: NotificationRecord) -> NotificationRead:
    return NotificationRead.model_validate(notification)


def _not_found(exc: NotificationNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Notificación {exc.notification_id} no encontrada",
    )


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    user_id: str = Depends(get_current_user_id),
    feed: SqlNotificationFeed = Depends(get_notification_feed),
    settings: Settings = Depends(get_app_settings),
) -> NotificationListResponse:
    """Devuelve las notificaciones más recientes del usuario autenticado."""

    notifications = await feed.fetch_recent(user_id, limit=settings.notification_page_size)
    unread_count = await feed.count_unread(user_id)
    return NotificationListResponse(
        notifications=[_notification_to_schema(n) for n in notifications],
        unread_count=unread_count,
    )


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def send_notification(
    payload: NotificationCreate,
    user_id: str = Depends(get_current_user_id),
    feed: SqlNotificationFeed = Depends(get_notification_feed),
) -> NotificationRead:
    """Crea una notificación y la publica a las sesiones activas del destinatario."""

    if payload.user_id is not None and payload.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No puede enviar notificaciones a otros usuarios",
        )

    try:
        notification = await create_notification(
            feed,
            user_id=user_id,
            title=payload.title,
            message=payload.message,
            notification_type=payload.type,
            link=payload.link,
            expires_at=payload.expires_at,
            priority=payload.priority,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _notification_to_schema(notification)


@router.post("/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read(
    payload: NotificationMarkReadRequest,
    user_id: str = Depends(get_current_user_id),
    feed: SqlNotificationFeed = Depends(get_notification_feed),
) -> Response:
    """Marca como leídas las notificaciones indicadas."""

    try:
        await mark_notifications_read(feed, payload.unique_ids(), user_id=user_id)
    except NotificationNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    user_id: str = Depends(get_current_user_id),
    feed: SqlNotificationFeed = Depends(get_notification_feed),
) -> MarkAllReadResponse:
    """Marca como leídas todas las notificaciones del usuario."""

    updated = await mark_all_notifications_read(feed, user_id=user_id)
    return MarkAllReadResponse(updated=updated)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_notification(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    feed: SqlNotificationFeed = Depends(get_notification_feed),
) -> Response:
    """Elimina una notificación del usuario."""

    try:
        await delete_notification(feed, notification_id, user_id=user_id)
    except NotificationNotFoundError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/", response_model=NotificationDeleteAllResponse)
async def remove_all_notifications(
    user_id: str = Depends(get_current_user_id),
    feed: SqlNotificationFeed = Depends(get_notification_feed),
) -> NotificationDeleteAllResponse:
    """Elimina todas las notificaciones del usuario."""

    deleted = await delete_all_notifications(feed, user_id=user_id)
    return NotificationDeleteAllResponse(deleted=deleted)


def _state_message(kind: str, store: NotificationStore) -> dict[str, Any]:
    return {"type": kind, "data": serialize_state(store.get_all(), store.get_unread_count())}


def _message_ids(message: dict[str, Any]) -> list[str]:
    ids = message.get("ids", [])
    if not isinstance(ids, list):
        return []
    return [str(notification_id) for notification_id in ids if notification_id]


async def _owned_ids(
    feed: SqlNotificationFeed, session: NotificationSession, message: dict[str, Any]
) -> list[str]:
    """Keep the ids of the message that belong to the session user."""

    owned: list[str] = []
    for notification_id in _message_ids(message):
        if notification_id not in session.store:
            record = await feed.get_record(notification_id)
            if record is None or record.user_id != session.user_id:
                logger.warning(
                    "Ignoring notification %s not owned by user %s",
                    notification_id,
                    session.user_id,
                )
                continue
        owned.append(notification_id)
    return owned


async def _drain_outbox(websocket: WebSocket, outbox: asyncio.Queue[dict[str, Any]]) -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


@router.websocket("/ws")
async def notifications_websocket(
    websocket: WebSocket,
    feed: SqlNotificationFeed = Depends(get_notification_feed),
    cursors: SqlCursorStore = Depends(get_cursor_store),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        user_id = resolve_user_id(token)
    except ValueError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    session = NotificationSession(
        user_id,
        feed,
        cursors,
        delivery_filter=build_delivery_filter(settings),
        on_alert=lambda record: outbox.put_nowait(
            {"type": "alert", "data": serialize_notification(record)}
        ),
        on_error=lambda exc: outbox.put_nowait(
            {"type": "error", "detail": "La suscripción de notificaciones se interrumpió"}
        ),
        page_size=settings.notification_page_size,
    )

    await websocket.accept()
    try:
        await session.start()
    except InitialFetchError:
        logger.warning("Closing notification websocket for user %s", user_id)
        session.close()
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    await websocket.send_json(_state_message("init", session.store))
    unwatch = session.store.watch(lambda store: outbox.put_nowait(_state_message("state", store)))
    sender = asyncio.create_task(_drain_outbox(websocket, outbox))
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                outbox.put_nowait({"type": "pong"})
            elif message_type == "ack":
                for notification_id in await _owned_ids(feed, session, message):
                    await session.read_state.mark_as_read(notification_id)
            elif message_type == "read-all":
                await session.read_state.mark_all_as_read()
            elif message_type == "delete":
                for notification_id in await _owned_ids(feed, session, message):
                    await session.read_state.delete(notification_id)
    except WebSocketDisconnect:
        logger.debug("Notification websocket disconnected for user %s", user_id)
    finally:
        unwatch()
        sender.cancel()
        session.close()
        await asyncio.gather(sender, return_exceptions=True)
