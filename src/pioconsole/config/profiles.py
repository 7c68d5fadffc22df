"""Named profiles: save, load, list and delete define sets through the backend.

Save/load/delete raise ``ProfileError`` so the caller can word the message
for its context. Listing is best-effort and notifies on failure.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pydantic

from pioconsole import backend as commands
from pioconsole.config.models import SavedProfile
from pioconsole.config.state import ConfigState
from pioconsole.core.gateway import CommandGateway
from pioconsole.core.notifications import NotificationScheduler, Severity
from pioconsole.core.store import Store
from pioconsole.exceptions import ConsoleError, ProfileError
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

PROFILE_TIMEOUT_MS = 10_000


class ProfileManager:
    """Profile operations for the app currently held in ``ConfigState``."""

    def __init__(
        self,
        gateway: CommandGateway,
        config: ConfigState,
        notifications: NotificationScheduler,
        timeout_ms: int = PROFILE_TIMEOUT_MS,
    ) -> None:
        self._gateway = gateway
        self._config = config
        self._notifications = notifications
        self._timeout_ms = timeout_ms
        self.available: Store[list[str]] = Store([])
        self.loading: Store[bool] = Store(False)

    async def load_profiles(self, app_name: str) -> list[str]:
        """Refresh the list of profile names for *app_name*."""
        self.loading.set(True)
        try:
            names = await self._gateway.call(
                commands.LIST_PROFILES, {"app_name": app_name}, self._timeout_ms
            )
            profiles = [str(n) for n in names or []]
        except ConsoleError as exc:
            logger.error("profile_list_failed", app=app_name, error=str(exc))
            self._notifications.push("Failed to load profiles", Severity.ERROR)
            profiles = []
        finally:
            self.loading.set(False)
        self.available.set(profiles)
        return profiles

    async def save_profile(self, name: str) -> SavedProfile:
        """Persist the current defines under *name* and mark them clean."""
        state = self._config.state
        now = datetime.now(timezone.utc).isoformat()
        profile = SavedProfile(
            name=name,
            app_name=state.app_name,
            environment=state.environment,
            defines=dict(state.defines),
            created_at=now,
            updated_at=now,
        )
        try:
            await self._gateway.call(
                commands.SAVE_PROFILE, {"profile": profile.model_dump()}, self._timeout_ms
            )
        except ConsoleError as exc:
            raise ProfileError(f"Failed to save profile: {exc}", command=exc.command) from exc

        logger.info("profile_saved", profile=name, app=state.app_name)
        await self.load_profiles(state.app_name)
        self._config.reset_dirty()
        return profile

    async def load_profile(self, app_name: str, profile_name: str) -> SavedProfile:
        try:
            raw = await self._gateway.call(
                commands.LOAD_PROFILE,
                {"app_name": app_name, "profile_name": profile_name},
                self._timeout_ms,
            )
            return SavedProfile.model_validate(raw)
        except ConsoleError as exc:
            raise ProfileError(f"Failed to load profile: {exc}", command=exc.command) from exc
        except pydantic.ValidationError as exc:
            raise ProfileError(
                f"Failed to load profile: malformed profile data ({exc.error_count()} errors)",
                command=commands.LOAD_PROFILE,
            ) from exc

    async def delete_profile(self, app_name: str, profile_name: str) -> None:
        try:
            await self._gateway.call(
                commands.DELETE_PROFILE,
                {"app_name": app_name, "profile_name": profile_name},
                self._timeout_ms,
            )
        except ConsoleError as exc:
            raise ProfileError(f"Failed to delete profile: {exc}", command=exc.command) from exc

        logger.info("profile_deleted", profile=profile_name, app=app_name)
        await self.load_profiles(app_name)
