"""App discovery results, the selected app and its persisted preference."""

from pioconsole.apps.catalog import AppCatalog, SelectionPersister
from pioconsole.apps.preferences import PreferenceStore

__all__ = ["AppCatalog", "PreferenceStore", "SelectionPersister"]
