"""Discovered apps, the current app selection, and persisting that selection."""

from __future__ import annotations

import pydantic

from pioconsole import backend as commands
from pioconsole.apps.preferences import PreferenceStore
from pioconsole.config.models import AppInfo, MonorepoInfo
from pioconsole.core.debounce import Debouncer
from pioconsole.core.gateway import CommandGateway
from pioconsole.core.selection import resolve_selection
from pioconsole.core.store import Store
from pioconsole.core.timers import CallLater, loop_call_later
from pioconsole.exceptions import ConsoleError
from pioconsole.utils.logging import get_logger

logger = get_logger(__name__)

SELECTED_APP_KEY = "pioconsole:selected-app"
DISCOVER_TIMEOUT_MS = 20_000
PERSIST_DEBOUNCE_MS = 150


class AppCatalog:
    """Loads the monorepo's apps and keeps one of them selected."""

    def __init__(
        self,
        gateway: CommandGateway,
        preferences: PreferenceStore,
        timeout_ms: int = DISCOVER_TIMEOUT_MS,
    ) -> None:
        self._gateway = gateway
        self._preferences = preferences
        self._timeout_ms = timeout_ms
        self._load_in_flight = False
        self.monorepo: Store[MonorepoInfo | None] = Store(None)
        self.error: Store[str | None] = Store(None)
        self.loading: Store[bool] = Store(False)
        self.selected_app_name: Store[str | None] = Store(None)

    @property
    def app_names(self) -> list[str]:
        info = self.monorepo.get()
        return [app.name for app in info.apps] if info else []

    @property
    def selected_app(self) -> AppInfo | None:
        info = self.monorepo.get()
        name = self.selected_app_name.get()
        if info is None or not name:
            return None
        return next((app for app in info.apps if app.name == name), None)

    def stored_app_name(self) -> str | None:
        return self._preferences.get(SELECTED_APP_KEY)

    def select_app(self, app_name: str | None) -> None:
        self.selected_app_name.set(app_name)

    async def load_apps(self) -> None:
        """Discover apps and resolve which one is selected.

        A second call while one is running returns immediately.
        """
        if self._load_in_flight:
            return
        self._load_in_flight = True
        self.loading.set(True)
        self.error.set(None)
        try:
            raw = await self._gateway.call(commands.DISCOVER_APPS, None, self._timeout_ms)
            info = MonorepoInfo.model_validate(raw)
            self.monorepo.set(info)

            names = [app.name for app in info.apps]
            chosen = resolve_selection(
                self.selected_app_name.get(),
                self.stored_app_name(),
                names,
                names[0] if names else None,
            )
            self.selected_app_name.set(chosen)
            logger.info("apps_discovered", count=len(names), selected=chosen)
        except (ConsoleError, pydantic.ValidationError) as exc:
            logger.error("app_discovery_failed", error=str(exc))
            self.error.set(str(exc))
        finally:
            self._load_in_flight = False
            self.loading.set(False)


class SelectionPersister:
    """Writes every selection change to preferences after a short quiet period.

    Call :meth:`close` when the owning session ends; it drops any pending
    write and stops listening.
    """

    def __init__(
        self,
        selection: Store[str | None],
        preferences: PreferenceStore,
        key: str = SELECTED_APP_KEY,
        debounce_ms: int = PERSIST_DEBOUNCE_MS,
        call_later: CallLater = loop_call_later,
    ) -> None:
        self._preferences = preferences
        self._key = key
        self._debounced = Debouncer(self._persist, debounce_ms, call_later)
        self._unsubscribe = selection.subscribe(self._debounced)

    @property
    def pending(self) -> bool:
        return self._debounced.pending

    def _persist(self, value: str | None) -> None:
        self._preferences.set(self._key, value)
        logger.debug("selection_persisted", key=self._key, value=value)

    def close(self) -> None:
        self._debounced.cancel()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
