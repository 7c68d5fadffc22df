"""Build, upload, test and clean endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from pioconsole.api.deps import get_session
from pioconsole.build.models import BuildState
from pioconsole.session import ConsoleSession

router = APIRouter(tags=["build"])


class BuildRequest(BaseModel):
    app_name: str
    environment: str
    build_flags: list[str] | None = Field(
        default=None, description="Explicit flags; generated from the current defines when omitted"
    )
    upload_port: str | None = None


class CleanRequest(BaseModel):
    app_name: str
    environment: str | None = None


class OperationResult(BaseModel):
    success: bool


def _flags(session: ConsoleSession, request: BuildRequest) -> list[str]:
    if request.build_flags is not None:
        return request.build_flags
    return session.config.generate_build_flags()


@router.get("/build", response_model=BuildState)
async def get_build_state(session: ConsoleSession = Depends(get_session)) -> BuildState:
    return session.build.state


@router.post("/build/run", response_model=OperationResult)
async def run_build(
    request: BuildRequest, session: ConsoleSession = Depends(get_session)
) -> OperationResult:
    ok = await session.build.run_build(
        request.app_name, request.environment, _flags(session, request)
    )
    return OperationResult(success=ok)


@router.post("/build/upload", response_model=OperationResult)
async def run_upload(
    request: BuildRequest, session: ConsoleSession = Depends(get_session)
) -> OperationResult:
    ok = await session.build.run_upload(
        request.app_name,
        request.environment,
        _flags(session, request),
        request.upload_port,
    )
    return OperationResult(success=ok)


@router.post("/build/test", response_model=OperationResult)
async def run_tests(
    request: BuildRequest, session: ConsoleSession = Depends(get_session)
) -> OperationResult:
    ok = await session.build.run_tests(request.app_name, request.environment)
    return OperationResult(success=ok)


@router.post("/build/clean", response_model=OperationResult)
async def clean_build(
    request: CleanRequest, session: ConsoleSession = Depends(get_session)
) -> OperationResult:
    ok = await session.build.clean_build(request.app_name, request.environment)
    return OperationResult(success=ok)


@router.post("/build/clear-log", response_model=BuildState)
async def clear_log(session: ConsoleSession = Depends(get_session)) -> BuildState:
    session.build.clear_log()
    return session.build.state


@router.post("/build/clear-status", response_model=BuildState)
async def clear_status(session: ConsoleSession = Depends(get_session)) -> BuildState:
    session.build.clear_status()
    return session.build.state


@router.post("/build/reset", response_model=BuildState)
async def reset(session: ConsoleSession = Depends(get_session)) -> BuildState:
    session.build.reset()
    return session.build.state
