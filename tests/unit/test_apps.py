"""Unit tests for app discovery, selection persistence and preferences."""

from __future__ import annotations

import asyncio

import pytest

from pioconsole.apps.catalog import SELECTED_APP_KEY, AppCatalog, SelectionPersister
from pioconsole.apps.preferences import PreferenceStore
from pioconsole.core.debounce import Debouncer
from pioconsole.core.store import Store

MONOREPO = {
    "path": "/work/firmware",
    "pio_path": "/usr/bin/pio",
    "apps": [
        {"name": "blink", "environments": [{"name": "esp32dev", "platform": "espressif32"}]},
        {"name": "sensor-node"},
        {"name": "gateway"},
    ],
}


@pytest.fixture
def preferences(tmp_path) -> PreferenceStore:
    return PreferenceStore(tmp_path / "state")


@pytest.fixture
def catalog(gateway, preferences) -> AppCatalog:
    return AppCatalog(gateway, preferences)


class TestPreferenceStore:
    def test_roundtrip_and_remove(self, preferences):
        preferences.set("k", "v")
        assert preferences.get("k") == "v"

        preferences.set("k", None)
        assert preferences.get("k") is None

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        state = tmp_path / "state"
        state.mkdir()
        (state / "preferences.json").write_text("{not json", encoding="utf-8")

        assert PreferenceStore(state).get("k") is None

    def test_no_directory_is_noop(self):
        store = PreferenceStore(None)
        store.set("k", "v")
        assert store.available is False
        assert store.get("k") is None


class TestCatalog:
    @pytest.mark.asyncio
    async def test_first_app_selected_by_default(self, catalog, backend):
        backend.responses["discover_apps"] = MONOREPO

        await catalog.load_apps()

        assert catalog.app_names == ["blink", "sensor-node", "gateway"]
        assert catalog.selected_app_name.get() == "blink"
        assert catalog.selected_app.environments[0].name == "esp32dev"
        assert catalog.loading.get() is False

    @pytest.mark.asyncio
    async def test_stored_choice_restored(self, catalog, backend, preferences):
        preferences.set(SELECTED_APP_KEY, "gateway")
        backend.responses["discover_apps"] = MONOREPO

        await catalog.load_apps()

        assert catalog.selected_app_name.get() == "gateway"

    @pytest.mark.asyncio
    async def test_current_choice_wins_over_stored(self, catalog, backend, preferences):
        preferences.set(SELECTED_APP_KEY, "gateway")
        catalog.select_app("sensor-node")
        backend.responses["discover_apps"] = MONOREPO

        await catalog.load_apps()

        assert catalog.selected_app_name.get() == "sensor-node"

    @pytest.mark.asyncio
    async def test_stale_stored_choice_ignored(self, catalog, backend, preferences):
        preferences.set(SELECTED_APP_KEY, "deleted-app")
        backend.responses["discover_apps"] = MONOREPO

        await catalog.load_apps()

        assert catalog.selected_app_name.get() == "blink"

    @pytest.mark.asyncio
    async def test_failure_sets_error(self, catalog, backend):
        backend.responses["discover_apps"] = RuntimeError("platformio.ini not found")

        await catalog.load_apps()

        assert catalog.error.get() == "platformio.ini not found"
        assert catalog.monorepo.get() is None
        assert catalog.selected_app is None

    @pytest.mark.asyncio
    async def test_concurrent_load_is_single_flight(self, catalog, backend):
        release = asyncio.Event()

        async def slow(args):
            await release.wait()
            return MONOREPO

        backend.responses["discover_apps"] = slow
        first = asyncio.create_task(catalog.load_apps())
        await asyncio.sleep(0)

        await catalog.load_apps()
        release.set()
        await first

        assert backend.commands() == ["discover_apps"]


class TestSelectionPersister:
    def test_debounced_write(self, preferences, clock):
        selection: Store[str | None] = Store(None)
        persister = SelectionPersister(selection, preferences, call_later=clock.call_later)

        selection.set("blink")
        selection.set("gateway")
        clock.advance(149)
        assert preferences.get(SELECTED_APP_KEY) is None
        assert persister.pending is True

        clock.advance(1)
        assert preferences.get(SELECTED_APP_KEY) == "gateway"
        assert persister.pending is False

    def test_none_clears_stored_value(self, preferences, clock):
        preferences.set(SELECTED_APP_KEY, "blink")
        selection: Store[str | None] = Store("blink")
        SelectionPersister(selection, preferences, call_later=clock.call_later)

        selection.set(None)
        clock.advance(150)

        assert preferences.get(SELECTED_APP_KEY) is None

    def test_close_drops_pending_write(self, preferences, clock):
        selection: Store[str | None] = Store(None)
        persister = SelectionPersister(selection, preferences, call_later=clock.call_later)

        selection.set("blink")
        persister.close()
        clock.advance(1000)
        selection.set("gateway")
        clock.advance(1000)

        assert preferences.get(SELECTED_APP_KEY) is None
        assert selection.subscriber_count == 0


class TestDebouncer:
    def test_only_last_call_fires(self, clock):
        seen = []
        debounced = Debouncer(seen.append, 100, clock.call_later)

        debounced(1)
        clock.advance(50)
        debounced(2)
        clock.advance(99)
        assert seen == []

        clock.advance(1)
        assert seen == [2]
        assert clock.pending == 0
