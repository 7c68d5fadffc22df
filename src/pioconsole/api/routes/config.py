"""App selection, define editing, profile and pin validation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from pioconsole.api.deps import get_session, http_error
from pioconsole.config.models import AppConfigState, MonorepoInfo, SavedProfile
from pioconsole.core.selection import resolve_selection
from pioconsole.exceptions import ProfileError
from pioconsole.session import ConsoleSession
from pioconsole.validation.pins import PinPurpose, PinValidation

router = APIRouter(tags=["config"])


class AppsResponse(BaseModel):
    monorepo: MonorepoInfo | None = None
    selected: str | None = None
    error: str | None = None


class SelectAppRequest(BaseModel):
    app_name: str


class InitConfigRequest(BaseModel):
    environment: str


class DefineUpdate(BaseModel):
    value: str


class SaveProfileRequest(BaseModel):
    name: str


class PinRequest(BaseModel):
    pin: int | str
    purpose: PinPurpose
    platform: str
    module: str | None = None


class ResolveRequest(BaseModel):
    primary: str | None = None
    persisted: str | None = None
    available: list[str] = []
    fallback: str | None = None


def _apps_response(session: ConsoleSession) -> AppsResponse:
    return AppsResponse(
        monorepo=session.apps.monorepo.get(),
        selected=session.apps.selected_app_name.get(),
        error=session.apps.error.get(),
    )


@router.get("/apps", response_model=AppsResponse)
async def get_apps(session: ConsoleSession = Depends(get_session)) -> AppsResponse:
    return _apps_response(session)


@router.post("/apps/refresh", response_model=AppsResponse)
async def refresh_apps(session: ConsoleSession = Depends(get_session)) -> AppsResponse:
    await session.apps.load_apps()
    return _apps_response(session)


@router.post("/apps/select", response_model=AppsResponse)
async def select_app(
    request: SelectAppRequest, session: ConsoleSession = Depends(get_session)
) -> AppsResponse:
    if request.app_name not in session.apps.app_names:
        raise HTTPException(status_code=404, detail=f"Unknown app {request.app_name}")
    session.apps.select_app(request.app_name)
    return _apps_response(session)


@router.post("/selection/resolve")
async def resolve(request: ResolveRequest) -> dict:
    chosen = resolve_selection(
        request.primary, request.persisted, request.available, request.fallback
    )
    return {"selected": chosen}


@router.get("/config", response_model=AppConfigState)
async def get_config(session: ConsoleSession = Depends(get_session)) -> AppConfigState:
    return session.config.state


@router.post("/config/init", response_model=AppConfigState)
async def init_config(
    request: InitConfigRequest, session: ConsoleSession = Depends(get_session)
) -> AppConfigState:
    app = session.apps.selected_app
    if app is None:
        raise HTTPException(status_code=409, detail="No app selected")
    env = next((e for e in app.environments if e.name == request.environment), None)
    if env is None:
        raise HTTPException(status_code=404, detail=f"Unknown environment {request.environment}")
    session.config.init_config(app, env)
    return session.config.state


@router.put("/config/defines/{name}", response_model=AppConfigState)
async def update_define(
    name: str, update: DefineUpdate, session: ConsoleSession = Depends(get_session)
) -> AppConfigState:
    session.config.update_define(name, update.value)
    return session.config.state


@router.get("/config/flags")
async def build_flags(session: ConsoleSession = Depends(get_session)) -> list[str]:
    return session.config.generate_build_flags()


@router.get("/profiles")
async def list_profiles(
    app_name: str = Query(...), session: ConsoleSession = Depends(get_session)
) -> list[str]:
    return await session.profiles.load_profiles(app_name)


@router.post("/profiles", response_model=SavedProfile)
async def save_profile(
    request: SaveProfileRequest, session: ConsoleSession = Depends(get_session)
) -> SavedProfile:
    try:
        return await session.profiles.save_profile(request.name)
    except ProfileError as exc:
        raise http_error(exc) from exc


@router.get("/profiles/{app_name}/{profile_name}", response_model=SavedProfile)
async def load_profile(
    app_name: str, profile_name: str, session: ConsoleSession = Depends(get_session)
) -> SavedProfile:
    try:
        return await session.profiles.load_profile(app_name, profile_name)
    except ProfileError as exc:
        raise http_error(exc) from exc


@router.post("/profiles/{app_name}/{profile_name}/apply", response_model=AppConfigState)
async def apply_profile(
    app_name: str, profile_name: str, session: ConsoleSession = Depends(get_session)
) -> AppConfigState:
    try:
        profile = await session.profiles.load_profile(app_name, profile_name)
    except ProfileError as exc:
        raise http_error(exc) from exc
    session.config.apply_profile(profile)
    return session.config.state


@router.delete("/profiles/{app_name}/{profile_name}")
async def delete_profile(
    app_name: str, profile_name: str, session: ConsoleSession = Depends(get_session)
) -> dict:
    try:
        await session.profiles.delete_profile(app_name, profile_name)
    except ProfileError as exc:
        raise http_error(exc) from exc
    return {"app_name": app_name, "profile_name": profile_name, "deleted": True}


@router.post("/pins/validate", response_model=PinValidation)
async def validate_pin(
    request: PinRequest, session: ConsoleSession = Depends(get_session)
) -> PinValidation:
    return await session.pins.validate_pin(
        request.pin, request.purpose, request.platform, request.module
    )


@router.get("/pins/safe")
async def safe_pins(
    platform: str = Query(...),
    module: str | None = Query(default=None),
    session: ConsoleSession = Depends(get_session),
) -> list[int]:
    return await session.pins.get_safe_pins(platform, module)
