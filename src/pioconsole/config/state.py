"""Editable define values for the selected app and environment."""

from __future__ import annotations

from pioconsole.config.build_flags import build_flags_from_defines
from pioconsole.config.models import (
    AppConfigState,
    AppInfo,
    DiscoveredEnvironment,
    SavedProfile,
)
from pioconsole.config.platform import platform_from_environment, platform_key
from pioconsole.core.store import Store
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)


class ConfigState:
    """Holds the active defines and whether they differ from what was loaded."""

    def __init__(self, store: Store[AppConfigState] | None = None) -> None:
        self.store: Store[AppConfigState] = store if store is not None else Store(AppConfigState())

    @property
    def state(self) -> AppConfigState:
        return self.store.get()

    def init_config(self, app: AppInfo, environment: DiscoveredEnvironment) -> None:
        """Seed defines with schema defaults, platform-conditional ones included."""
        platform = platform_from_environment(environment)
        conditional = app.config_schema.platform_conditional
        visible = [
            *app.config_schema.defines,
            *conditional.get(platform_key(platform), []),
            *conditional.get(platform, []),
        ]
        defines = {define.name: define.default_value for define in visible}
        self.store.set(
            AppConfigState(
                app_name=app.name,
                environment=environment.name,
                defines=defines,
                is_dirty=False,
            )
        )
        logger.debug(
            "config_initialized",
            app=app.name,
            environment=environment.name,
            defines=len(defines),
        )

    def update_define(self, name: str, value: str) -> None:
        self.store.update(
            lambda s: s.model_copy(
                update={"defines": {**s.defines, name: value}, "is_dirty": True}
            )
        )

    def reset_dirty(self) -> None:
        self.store.update(lambda s: s.model_copy(update={"is_dirty": False}))

    def apply_profile(self, profile: SavedProfile) -> None:
        self.store.set(
            AppConfigState(
                app_name=profile.app_name,
                environment=profile.environment,
                defines=dict(profile.defines),
                is_dirty=False,
            )
        )
        logger.info("profile_applied", profile=profile.name, app=profile.app_name)

    def generate_build_flags(self) -> list[str]:
        return build_flags_from_defines(self.store.get().defines)
