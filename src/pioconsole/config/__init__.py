"""Build parameter state, build-flag generation and saved profiles."""

from pioconsole.config.build_flags import build_flags_from_defines, quote_build_flag_value
from pioconsole.config.profiles import ProfileManager
from pioconsole.config.state import ConfigState

__all__ = [
    "ConfigState",
    "ProfileManager",
    "build_flags_from_defines",
    "quote_build_flag_value",
]
