"""Serial port, connection and line buffer endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from pioconsole.api.deps import get_session, http_error
from pioconsole.exceptions import ConsoleError
from pioconsole.serial.models import VALID_BAUD_RATES, PortInfo, SerialBuffer, SerialState
from pioconsole.session import ConsoleSession

router = APIRouter(prefix="/serial", tags=["serial"])


class OpenRequest(BaseModel):
    port_path: str
    baud_rate: int = 115200


class OpenResponse(BaseModel):
    connection_id: str


class WriteRequest(BaseModel):
    data: str


class ActiveRequest(BaseModel):
    connection_id: str | None = None


class LockStatus(BaseModel):
    port_path: str
    status: str | None = None


def _require_known(session: ConsoleSession, connection_id: str) -> None:
    if not session.serial.is_known(connection_id):
        raise HTTPException(status_code=404, detail=f"Unknown connection {connection_id}")


@router.get("/baud-rates")
async def baud_rates() -> list[int]:
    return list(VALID_BAUD_RATES)


@router.get("", response_model=SerialState)
async def get_serial_state(session: ConsoleSession = Depends(get_session)) -> SerialState:
    return session.serial.state.get()


@router.post("/ports/refresh", response_model=list[PortInfo])
async def refresh_ports(session: ConsoleSession = Depends(get_session)) -> list[PortInfo]:
    return await session.serial.refresh_ports()


@router.post("/open", response_model=OpenResponse)
async def open_port(
    request: OpenRequest, session: ConsoleSession = Depends(get_session)
) -> OpenResponse:
    try:
        cid = await session.serial.open(request.port_path, request.baud_rate)
    except ConsoleError as exc:
        raise http_error(exc) from exc
    return OpenResponse(connection_id=cid)


@router.post("/active", response_model=SerialState)
async def set_active(
    request: ActiveRequest, session: ConsoleSession = Depends(get_session)
) -> SerialState:
    if request.connection_id is not None:
        _require_known(session, request.connection_id)
    session.serial.set_active(request.connection_id)
    return session.serial.state.get()


@router.get("/lock", response_model=LockStatus)
async def lock_status(
    port_path: str = Query(..., description="Serial port path"),
    session: ConsoleSession = Depends(get_session),
) -> LockStatus:
    try:
        status = await session.serial.get_port_lock_status(port_path)
    except ConsoleError as exc:
        raise http_error(exc) from exc
    return LockStatus(port_path=port_path, status=status)


@router.get("/backend-connections")
async def backend_connections(session: ConsoleSession = Depends(get_session)) -> list[str]:
    try:
        return await session.serial.list_backend_connections()
    except ConsoleError as exc:
        raise http_error(exc) from exc


@router.post("/{connection_id}/close")
async def close_port(connection_id: str, session: ConsoleSession = Depends(get_session)) -> dict:
    _require_known(session, connection_id)
    try:
        await session.serial.close(connection_id)
    except ConsoleError as exc:
        raise http_error(exc) from exc
    return {"connection_id": connection_id, "closed": True}


@router.post("/{connection_id}/write")
async def write(
    connection_id: str,
    request: WriteRequest,
    session: ConsoleSession = Depends(get_session),
) -> dict:
    _require_known(session, connection_id)
    try:
        await session.serial.write(connection_id, request.data)
    except ConsoleError as exc:
        raise http_error(exc) from exc
    return {"connection_id": connection_id, "written": len(request.data)}


@router.get("/{connection_id}/buffer", response_model=SerialBuffer)
async def get_buffer(
    connection_id: str,
    tail: int | None = Query(default=None, ge=1, description="Return only the last N lines"),
    session: ConsoleSession = Depends(get_session),
) -> SerialBuffer:
    buffer = session.serial.get_buffer(connection_id)
    if buffer is None:
        raise HTTPException(status_code=404, detail=f"Unknown connection {connection_id}")
    if tail is not None:
        return SerialBuffer(lines=buffer.lines[-tail:], partial_line=buffer.partial_line)
    return buffer


@router.post("/{connection_id}/clear", response_model=SerialBuffer)
async def clear_buffer(
    connection_id: str, session: ConsoleSession = Depends(get_session)
) -> SerialBuffer:
    _require_known(session, connection_id)
    session.serial.clear_buffer(connection_id)
    return session.serial.get_buffer(connection_id) or SerialBuffer()
