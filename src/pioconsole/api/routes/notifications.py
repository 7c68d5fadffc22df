"""Notification list endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from pioconsole.api.deps import get_session
from pioconsole.core.notifications import Notification
from pioconsole.session import ConsoleSession

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[Notification])
async def list_notifications(session: ConsoleSession = Depends(get_session)) -> list[Notification]:
    return session.notifications.notifications


@router.delete("/{notification_id}")
async def dismiss(notification_id: str, session: ConsoleSession = Depends(get_session)) -> dict:
    if not session.notifications.dismiss(notification_id):
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    return {"id": notification_id, "dismissed": True}


@router.delete("")
async def dismiss_all(session: ConsoleSession = Depends(get_session)) -> dict:
    session.notifications.dismiss_all()
    return {"dismissed": True}
